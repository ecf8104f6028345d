from leadboard.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from leadboard.models.user import User  # noqa: F401
from leadboard.models.lead import LeadRecord  # noqa: F401
from leadboard.models.tracking import LeadTracking, LeadTrackingHistory  # noqa: F401
