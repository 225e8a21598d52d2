from institute.exceptions import ConflictError, NotFoundError, ServiceError, TransientError


class RegistrationNotFound(NotFoundError):
    code = 'registration_not_found'
    default_message = 'Registration not found.'


class BatchNotFound(NotFoundError):
    code = 'batch_not_found'
    default_message = 'Batch not found.'


class RegistrationNotPaid(ServiceError):
    code = 'registration_not_paid'
    default_message = 'Only paid registrations can be allocated to a batch.'


class RegistrationMismatch(ServiceError):
    code = 'registration_mismatch'
    default_message = 'Registration does not belong to this program and location.'


class RegistrationNotAllocated(ServiceError):
    code = 'registration_not_allocated'
    default_message = 'Registration has not been allocated to a batch yet.'


class InvalidBatchStatus(ServiceError):
    code = 'invalid_batch_status'
    default_message = 'Invalid batch status.'


class BatchUnavailable(ConflictError):
    code = 'batch_unavailable'
    default_message = 'Batch is not open for new students.'


class CapacityExceeded(ConflictError):
    """Internal signal: the batch filled up, move on to the next one."""
    code = 'capacity_exceeded'
    default_message = 'Batch is at capacity.'


class AlreadyAllocated(ConflictError):
    """Internal signal: the registration already has a batch.

    `allocate` converts this into the existing assignment.
    """
    code = 'already_allocated'
    default_message = 'Registration is already allocated to a batch.'

    def __init__(self, assignment, message=None):
        self.assignment = assignment
        super().__init__(message)


class AllocationUnavailable(TransientError):
    code = 'allocation_unavailable'
    default_message = 'Batch allocation is busy, please retry.'
