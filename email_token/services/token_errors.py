"""Email token domain errors.

Every failure of the token protocol surfaces as one of these typed errors.
Each carries an internal ``code`` for logs and tests and a ``public_code``
for what the end user is shown. "No pending token" and "wrong token" share
a public code so a login link never reveals which emails have live tokens.
"""

# Public reason shown for any rejected link
INVALID_LINK = "INVALID_LINK"


class EmailTokenError(Exception):
    """Base class for token protocol failures.

    Attributes:
        code: Internal, machine-readable reason.
        public_code: Reason safe to show to the end user.
        message: Human-readable message safe to show to the end user.
    """

    code = "EMAIL_TOKEN_ERROR"
    public_code = INVALID_LINK
    message = "Invalid or expired link"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ServiceDisabledError(EmailTokenError):
    """The mechanism is disabled; issuance and verification are refused."""

    code = "SERVICE_DISABLED"
    public_code = "SERVICE_DISABLED"
    message = "Email token login is not enabled"


class NoPendingTokenError(EmailTokenError):
    """No outstanding digest for the identity (redeemed, superseded or never issued)."""

    code = "NO_PENDING_TOKEN"


class InvalidTokenError(EmailTokenError):
    """Presented token does not match the stored digest.

    The pending digest has already been consumed when this is raised.
    """

    code = "INVALID_TOKEN"


class UnsupportedAlgorithmError(ValueError):
    """Hash algorithm tag is not in the hasher registry."""

    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"Unsupported token hash algorithm: {algorithm!r}")
