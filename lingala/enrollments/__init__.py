"""Course enrollments: lookups, listings and admin manual grants."""

from .models import ENROLLMENTS_TABLES_CQL, Enrollment, EnrollmentSource


__all__ = ["ENROLLMENTS_TABLES_CQL", "Enrollment", "EnrollmentSource"]
