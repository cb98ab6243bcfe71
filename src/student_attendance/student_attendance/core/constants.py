"""Defaults for paging, report windows and the local day, student field limits,
and the names of the unique keys the MySQL layer reports on a duplicate.
"""

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
DEFAULT_REPORT_DAYS = 30
DEFAULT_ACTIVITY_DAYS = 7
DEFAULT_TIMEZONE = "Asia/Kolkata"

MIN_ADMISSION_YEAR = 2020
STUDENT_NAME_MIN = 2
STUDENT_NAME_MAX = 50

UID_PATTERN = r"^[1-4][A-Z]{2,3}\d{2}\d{2,3}$"
PHONE_PATTERN = r"^[6-9]\d{9}$"

# Unique constraint names from database/schema.sql
UQ_STUDENT_UID = "uq_students_uid"
UQ_STUDENT_ACTIVE_ROLL = "uq_students_active_roll"
UQ_ATTENDANCE_STUDENT_DATE = "uq_attendance_student_date"
UQ_SESSION_COHORT_DATE = "uq_sessions_cohort_date"
