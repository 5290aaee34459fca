from datetime import date, datetime, timedelta

from civic_issues.models.emergency import Emergency, EmergencyType
from civic_issues.models.report import Report
from civic_issues.services.identifiers import (
    day_bounds,
    format_emergency_code,
    format_report_code,
    next_emergency_code,
    next_report_code,
)

JUNE_1 = datetime(2025, 6, 1, 14, 30)


def _report(code, created_at, citizen, dept, **extra):
    return Report(
        report_code=code, title="Broken streetlight", description="Light out for a week",
        citizen_id=citizen.id, department_id=dept.id, lng=77.5, lat=12.9, created_at=created_at, **extra,
    )


def test_formats():
    assert format_report_code(date(2025, 6, 1), 3) == "RPT-20250601-0003"
    assert format_emergency_code(EmergencyType.medical, date(2025, 6, 1), 1) == "EMR-MED-20250601-0001"
    assert format_emergency_code("disaster", date(2025, 12, 31), 42) == "EMR-DIS-20251231-0042"
    assert format_report_code(date(2025, 6, 1), 12345) == "RPT-20250601-12345"


def test_day_bounds_cover_whole_local_day():
    start, end = day_bounds(JUNE_1)
    assert start == datetime(2025, 6, 1, 0, 0, 0)
    assert end == datetime(2025, 6, 1, 23, 59, 59, 999000)


def test_third_report_of_the_day(db, make_user, make_department):
    citizen, dept = make_user(), make_department()
    db.add_all([
        _report("RPT-20250601-0001", datetime(2025, 6, 1, 8, 0), citizen, dept),
        _report("RPT-20250601-0002", datetime(2025, 6, 1, 9, 0), citizen, dept),
        _report("RPT-20250531-0001", datetime(2025, 5, 31, 23, 59), citizen, dept),
        _report("RPT-20250602-0001", datetime(2025, 6, 2, 0, 0), citizen, dept),
    ])
    db.commit()
    assert next_report_code(db, JUNE_1) == "RPT-20250601-0003"


def test_soft_deleted_reports_still_count(db, make_user, make_department):
    citizen, dept = make_user(), make_department()
    db.add(_report("RPT-20250601-0001", datetime(2025, 6, 1, 8, 0), citizen, dept, is_deleted=True))
    db.commit()
    assert next_report_code(db, JUNE_1) == "RPT-20250601-0002"


def test_first_medical_emergency_of_the_day(db):
    assert next_emergency_code(db, EmergencyType.medical, JUNE_1) == "EMR-MED-20250601-0001"


def test_emergency_sequence_counts_all_types(db, make_user):
    citizen = make_user()
    db.add(Emergency(
        emergency_code="EMR-FIR-20250601-0001", type=EmergencyType.fire, title="Kitchen fire",
        description="Smoke from second floor", contact_number="9876543210", citizen_id=citizen.id,
        lng=77.5, lat=12.9, created_at=JUNE_1 - timedelta(hours=2),
    ))
    db.commit()
    assert next_emergency_code(db, EmergencyType.police, JUNE_1) == "EMR-POL-20250601-0002"
