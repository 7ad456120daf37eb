"""
krbdiag Kerberos File Formats

- conf: krb5.conf parser and validation step
- keytab: keytab reader and validation step
- classifier: login failure classification
"""

from krbdiag.krb5.conf import parse_krb5_conf_lines, read_krb5_conf, validate_krb5_conf
from krbdiag.krb5.keytab import parse_keytab, read_keytab, validate_keytab
from krbdiag.krb5.classifier import classify_failure, describe_failure

__all__ = [
    "parse_krb5_conf_lines",
    "read_krb5_conf",
    "validate_krb5_conf",
    "parse_keytab",
    "read_keytab",
    "validate_keytab",
    "classify_failure",
    "describe_failure",
]
