from institute.exceptions import ConflictError, NotFoundError, ServiceError


class InvalidCoordinates(ServiceError):
    code = 'invalid_coordinates'
    default_message = 'Latitude must be within ±90 and longitude within ±180 decimal degrees.'


class InvalidSession(ServiceError):
    code = 'invalid_session'
    default_message = 'Session is not open for check-in.'


class InvalidDecision(ServiceError):
    code = 'invalid_decision'
    default_message = 'Decision must be one of: verified, rejected, manual_override.'


class StudentNotFound(NotFoundError):
    code = 'student_not_found'
    default_message = 'Student not found.'


class CheckInNotFound(NotFoundError):
    code = 'checkin_not_found'
    default_message = 'Check-in not found.'


class DuplicateCheckIn(ConflictError):
    code = 'duplicate_checkin'
    default_message = 'A check-in already exists for this session.'


class AlreadyResolved(ConflictError):
    code = 'already_resolved'
    default_message = 'Check-in has already been reviewed.'


class SessionNotFound(NotFoundError):
    code = 'session_not_found'
    default_message = 'Session not found.'
