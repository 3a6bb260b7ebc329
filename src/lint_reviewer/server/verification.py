import hashlib
import hmac


def verify_github_webhook(headers: dict[str, str], body: bytes, secret: str | None) -> None:
    """Verify a GitHub webhook's HMAC-SHA256 signature.

    Verification is skipped when no secret is configured.

    Raises:
        ValueError: If the signature header is missing, malformed or wrong
    """
    if not secret:
        return

    signature = headers.get("x-hub-signature-256", "")
    if not signature:
        raise ValueError("Missing X-Hub-Signature-256 header - ensure webhook secret is configured")

    if not signature.startswith("sha256="):
        raise ValueError("Invalid signature format - expected sha256= prefix")

    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    if not hmac.compare_digest(signature, expected):
        raise ValueError("GitHub webhook signature verification failed")
