from leasedesk.models.customer import Customer  # noqa
from leasedesk.models.lease import Lease  # noqa
from leasedesk.models.payment import Payment  # noqa
from leasedesk.models.audit_entry import AuditEntry  # noqa
