"""
Password Policy

Checks a candidate password before it is offered to the ledger store at
sign-up or on a password change.

DESIGN DECISION: The policy REPORTS, it never rejects on its own.
Every rule that fails becomes a ValidationIssue, so the front-end can show
all problems at once instead of one per attempt. The store itself does not
enforce strength; it only refuses values the record format cannot hold.

Rules:
- At least 8 characters
- At least one digit
- At least one letter
- At least one uppercase letter
- At least one special (non-alphanumeric) character
- No commas or line breaks (they cannot be stored)
"""

from bank_ledger.models.validation import PasswordCheckResult, ValidationIssue


class PasswordPolicy:
    """Strength and storability rules for passwords."""

    def __init__(self, min_length: int = 8):
        self.min_length = min_length

    def check(self, password: str) -> PasswordCheckResult:
        """Check a password against every rule."""
        issues = []

        if len(password) < self.min_length:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {self.min_length} characters long",
                severity="error",
                suggested_fix=f"Add {self.min_length - len(password)} more character(s)",
            ))

        if not any(ch.isdigit() for ch in password):
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing_digit",
                message="Password must contain at least one digit",
                severity="error",
            ))

        if not any(ch.isalpha() for ch in password):
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing_letter",
                message="Password must contain at least one letter",
                severity="error",
            ))

        if not any(ch.isupper() for ch in password):
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing_uppercase",
                message="Password must contain at least one uppercase letter",
                severity="error",
            ))

        if not any(not ch.isalnum() and not ch.isspace() for ch in password):
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing_special",
                message="Password must contain at least one special character",
                severity="error",
                suggested_fix="Add a symbol such as ! @ # $ or %",
            ))

        if any(ch in password for ch in (",", "\n", "\r")):
            issues.append(ValidationIssue(
                field="password",
                issue_type="unstorable",
                message="Password must not contain commas or line breaks",
                severity="error",
                suggested_fix="Use a different special character",
            ))

        if password and password != password.strip():
            issues.append(ValidationIssue(
                field="password",
                issue_type="surrounding_whitespace",
                message="Password starts or ends with whitespace",
                severity="warning",
                suggested_fix="Check that the spaces are intended",
            ))

        return PasswordCheckResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def get_user_friendly_summary(self, result: PasswordCheckResult) -> str:
        """
        Generate a user-friendly summary of a password check.

        This is what we show on the sign-up and change-password pages.
        """
        if result.is_valid and not result.issues:
            return "✅ Password meets all requirements."

        lines = []

        if result.has_errors:
            lines.append("❌ Password does not meet the requirements:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        warnings = [issue for issue in result.issues if issue.severity == "warning"]
        if warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in warnings:
                lines.append(f"   • {warning.message}")

        return "\n".join(lines).strip("\n")
