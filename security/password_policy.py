import re
from typing import List, Tuple

from flask import current_app, has_app_context

_POLICY_DEFAULTS = {
    "PASSWORD_MIN_LEN": 8,
    "PASSWORD_MAX_LEN": 128,
    "PASSWORD_REQUIRE_UPPER": True,
    "PASSWORD_REQUIRE_LOWER": True,
    "PASSWORD_REQUIRE_DIGIT": True,
    "PASSWORD_REQUIRE_SYMBOL": True,
    "PASSWORD_SYMBOLS": "!@#$%^&*",
}


def _policy() -> dict:
    if not has_app_context():
        return dict(_POLICY_DEFAULTS)
    cfg = current_app.config
    return {key: cfg.get(key, default) for key, default in _POLICY_DEFAULTS.items()}


def _character_rules(policy: dict):
    """(pattern, message) for every character class the policy turns on."""
    symbols = str(policy["PASSWORD_SYMBOLS"])
    rules = [
        ("PASSWORD_REQUIRE_UPPER", r"[A-Z]", "Password must include at least 1 uppercase letter"),
        ("PASSWORD_REQUIRE_LOWER", r"[a-z]", "Password must include at least 1 lowercase letter"),
        ("PASSWORD_REQUIRE_DIGIT", r"\d", "Password must include at least 1 number"),
        ("PASSWORD_REQUIRE_SYMBOL", "[" + re.escape(symbols) + "]",
         f"Password must include at least 1 symbol ({symbols})"),
    ]
    return [(re.compile(pattern), message) for flag, pattern, message in rules if policy[flag]]


def validate_password(pw: str) -> Tuple[bool, List[str]]:
    """Returns (ok, errors); errors lists every rule the password breaks."""
    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    policy = _policy()
    min_len = int(policy["PASSWORD_MIN_LEN"])
    max_len = int(policy["PASSWORD_MAX_LEN"])

    errors: List[str] = []
    if len(pw) < min_len:
        errors.append(f"Password must be at least {min_len} characters")
    if len(pw) > max_len:
        errors.append(f"Password must be at most {max_len} characters")
    errors.extend(message for pattern, message in _character_rules(policy) if not pattern.search(pw))

    return not errors, errors


def is_strong_password(pw: str) -> bool:
    return validate_password(pw)[0]


def password_strength(pw: str) -> dict:
    """0-4 score for the signup form meter, plus the same messages validation gives."""
    valid, errors = validate_password(pw)
    if not isinstance(pw, str):
        return {"score": 0, "valid": False, "feedback": errors}

    policy = _policy()
    min_len = int(policy["PASSWORD_MIN_LEN"])
    rules = _character_rules(policy)
    matched = sum(1 for pattern, _ in rules if pattern.search(pw))

    score = 0
    if len(pw) >= min_len:
        score += 1
    if len(pw) >= min_len + 4:
        score += 1
    if matched >= min(3, len(rules)):
        score += 1
    if matched == len(rules) and len(pw) >= min_len:
        score += 1

    if not valid:
        feedback = errors
    elif len(pw) < min_len + 4:
        feedback = ["Use a longer passphrase for extra strength"]
    else:
        feedback = []

    return {"score": min(score, 4), "valid": valid, "feedback": feedback}
