import csv
import io

from django.utils import timezone
from openpyxl import Workbook

EXPORT_HEADERS = ['Time', 'Student', 'Email', 'Session', 'Location', 'Distance (m)', 'Within Geofence', 'Status', 'Reviewed By', 'Notes']


def _row(check_in):
    student = check_in.student
    session = check_in.session
    location = session.location if session else None
    local_time = timezone.localtime(check_in.check_in_time)
    return [
        local_time.strftime('%H:%M:%S'),
        (student.get_full_name() or student.username) if student else '',
        getattr(student, 'email', '') or '',
        session.title if session else '',
        location.name if location else '',
        check_in.distance_from_center_meters,
        'Yes' if check_in.is_within_geofence else 'No',
        check_in.verification_status,
        check_in.verified_by.username if check_in.verified_by else '',
        check_in.notes or '',
    ]


def export_rows(queryset):
    for check_in in queryset:
        yield _row(check_in)


def build_csv(queryset) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_HEADERS)
    for row in export_rows(queryset):
        writer.writerow(row)
    return buf.getvalue()


def build_xlsx(queryset, title: str = 'Check-ins') -> bytes:
    wb = Workbook()
    ws = wb.active
    # sheet titles are capped at 31 characters
    ws.title = title[:31]
    ws.append(EXPORT_HEADERS)
    for row in export_rows(queryset):
        ws.append(row)

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()
