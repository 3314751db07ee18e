from wrytix.models.cms_models import (
    Role,
    RegistrationRole,
    SubmissionStatus,
    UserStatus,
)

__all__ = ["Role", "RegistrationRole", "SubmissionStatus", "UserStatus"]
