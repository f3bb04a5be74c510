"""
Built-in sensitive-data detectors.

Order matters: the library evaluates rules in the order returned by
builtin_definitions() and the first match wins.

Quasi-identifiers (QI_*) are deliberately 'info': a first name or a ZIP code
on its own is low risk, the risk comes from combining them.
"""

import re
from collections import namedtuple

RuleDefinition = namedtuple('RuleDefinition', ['code', 'severity', 'description', 'tags', 'regex', 'flags'])

I = re.IGNORECASE


def _rule(code, severity, description, tags, regex, flags=0):
    return RuleDefinition(code, severity, description, tuple(tags), regex, flags)


def builtin_definitions(secret_key_length=40, generic_secret_min_length=16):
    """
    Returns the built-in catalogue in evaluation order.

    secret_key_length and generic_secret_min_length tune the two broad
    credential heuristics (SEC_002 and SEC_999).
    """
    return [
        # Direct identifiers
        _rule("PII_001", "critical", "Email Address", ["contact", "direct_identifier"],
              r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", I),
        _rule("PII_003", "critical", "Social Security Number (US)", ["national_id", "direct_identifier"],
              r"\b(?!000|666|9\d{2})([0-8]\d{2})-?(?!00)(\d{2})-?(?!0000)(\d{4})\b"),
        _rule("PII_007", "critical", "National Insurance Number (UK)", ["national_id", "direct_identifier"],
              r"\b[A-CEGHJ-PR-TW-Z]{2}\s?\d{2}\s?\d{2}\s?\d{2}\s?[A-D]\b", I),
        _rule("PII_008", "critical", "Social Insurance Number (Canada)", ["national_id", "direct_identifier"],
              r"\b\d{3}-\d{3}-\d{3}\b|\b\d{9}\b"),

        # Quasi-identifiers
        _rule("QI_001", "info", "First Name (Common English)", ["name_part"],
              r"\b(James|John|Robert|Michael|William|David|Richard|Joseph|Mary|Patricia|Jennifer|Linda|Elizabeth|Susan|Jessica)\b", I),
        _rule("QI_002", "info", "Last Name (Common English)", ["name_part"],
              r"\b(Smith|Johnson|Williams|Brown|Jones|Garcia|Miller|Davis|Rodriguez|Martinez|Hernandez|Lopez|Gonzalez)\b", I),
        _rule("QI_003", "info", "Full Name (First Last)", ["name_full"],
              r"\b[A-Z][a-z]+(?:\s|,)\s?[A-Z][a-z]+\b"),
        _rule("QI_010", "info", "Date of Birth", ["dob"],
              r"\b((?:19|20)\d{2}[-/](?:0[1-9]|1[0-2])[-/](?:0[1-9]|[12]\d|3[01]))\b"
              r"|\b((?:0[1-9]|1[0-2])/(?:0[1-9]|[12]\d|3[01])/(?:19|20)\d{2})\b"),
        _rule("QI_020", "info", "Street Address", ["address_part"],
              r"\b\d{1,5}\s+(?:[A-Z][a-z]+\s+){1,5}(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Court|Ct|Lane|Ln)\b", I),
        _rule("QI_021", "info", "Zip Code (US)", ["location", "address_part"],
              r"\b\d{5}(?:-\d{4})?\b"),
        _rule("QI_022", "info", "Postal Code (Canada)", ["location", "address_part"],
              r"\b[A-CEGHJ-NPR-TVXY]\d[A-Z]\s?\d[A-Z]\d\b", I),
        _rule("QI_023", "info", "Postcode (UK)", ["location", "address_part"],
              r"\b([A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2})\b", I),

        # Financial
        _rule("PCI_001", "critical", "Credit Card Number", ["financial", "pci"],
              r"\b(?:4[0-9]{12}(?:[0-9]{3})?|5[1-5][0-9]{14}|6(?:011|5[0-9][0-9])[0-9]{12}"
              r"|3[47][0-9]{13}|3(?:0[0-5]|[68][0-9])[0-9]{11}|(?:2131|1800|35\d{3})\d{11})\b"),
        _rule("PIFI_001", "critical", "IBAN", ["financial", "pifi"],
              r"\b[A-Z]{2}[0-9]{2}[A-Z0-9]{4}[0-9]{7}[A-Z0-9]{0,16}\b"),
        _rule("PIFI_003", "error", "ABA Routing Number (US)", ["financial", "pifi"],
              r"\b(0[1-9]|1[0-2]|2[1-9]|3[0-2]|6[1-9]|7[0-2]|80)\d{7}\b"),

        # Credentials
        _rule("SEC_001", "critical", "AWS Access Key ID", ["secret", "credential"],
              r"\b(A3T[A-Z0-9]|AKIA|AGPA|AIDA|AROA|AIPA|ANPA|ANVA|ASIA)[A-Z0-9]{16}\b"),
        _rule("SEC_002", "critical", "AWS Secret Access Key", ["secret", "credential"],
              r"(?<![A-Z0-9/+=])[A-Z0-9/+=]{%d}(?![A-Z0-9/+=])" % secret_key_length),
        _rule("SEC_003", "critical", "Azure Client Secret", ["secret", "credential"],
              r"[A-Za-z0-9_\-.]{36}~[A-Za-z0-9_\-]{8}"),
        _rule("SEC_004", "critical", "Google Cloud API Key", ["secret", "credential"],
              r"AIza[0-9A-Za-z\-_]{35}"),
        _rule("SEC_005", "critical", "Private Key Block", ["secret", "credential", "crypto"],
              r"-----BEGIN (RSA|EC|PGP|OPENSSH|ENCRYPTED) PRIVATE KEY-----"),
        _rule("SEC_010", "critical", "Database Connection String", ["secret", "credential"],
              r"(Password|Pwd)=[^;]+;.*(Server|Data Source)=[^;]+;", I),
        _rule("SEC_999", "error", "Generic Secret Pattern", ["secret", "credential"],
              r"\b(key|token|secret|password|passwd|pwd|auth|bearer)[\s\"':=]+([a-zA-Z0-9_.\-]{%d,})\b"
              % generic_secret_min_length, I),

        # Protected health information
        _rule("PHI_001", "error", "ICD-10 Code", ["health", "phi"],
              r"\b[A-Z][0-9][0-9A-Z](?:\.[0-9A-Z]{1,4})?\b"),
        _rule("PHI_002", "error", "National Drug Code (US)", ["health", "phi"],
              r"\b\d{4,5}-\d{3,4}-\d{1,2}\b"),
        _rule("PHI_003", "error", "DEA Number (US)", ["health", "phi"],
              r"\b[ABCFGHLMPRSTX]\w\d{7}\b", I),

        # Network & device identifiers
        _rule("NET_001", "warning", "IP Address (v4)", ["location", "network"],
              r"\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\b"),
        _rule("NET_002", "warning", "MAC Address", ["device", "network"],
              r"\b(?:[0-9A-F]{2}[:-]){5}(?:[0-9A-F]{2})\b", I),
    ]
