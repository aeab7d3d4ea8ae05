from app.features.auth.utils.security import TokenIssuer, hash_password, verify_password
from app.features.auth.utils.verification import VerificationCodeManager, VerificationFlow

__all__ = [
    "TokenIssuer",
    "VerificationCodeManager",
    "VerificationFlow",
    "hash_password",
    "verify_password",
]
