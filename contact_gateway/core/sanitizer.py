import re


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Contact submissions carry addresses and phone numbers; only the masked
    form may reach the log files.
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: user@example.com -> u***@example.com
    message = re.sub(
        r"[\w.+-]+@[\w.-]+\.\w+",
        lambda m: m.group()[0] + "***@" + m.group().split("@")[1],
        message,
    )

    # IPs (IPv4): 192.168.1.100 -> 192.168.1.***
    message = re.sub(
        r"\b(\d{1,3}\.\d{1,3}\.\d{1,3}\.)\d{1,3}\b", r"\1***", message
    )

    # International phone numbers: +32 470 12 34 56 -> [PHONE_REDACTED]
    message = re.sub(
        r"\+\d{1,3}(?:[\s.-]?\d{1,4}){2,5}",
        "[PHONE_REDACTED]",
        message,
    )

    # Password values in common patterns
    message = re.sub(
        r'(password|passwd|pwd|secret)["\']?\s*[:=]\s*["\']?[^"\'&\s]+',
        r"\1=[REDACTED]",
        message,
        flags=re.IGNORECASE,
    )

    return message
