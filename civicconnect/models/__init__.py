"""Central model registry: import all models so Alembic autodiscover works."""

from civicconnect.database import Base  # noqa: F401

from civicconnect.models.area import Area  # noqa: F401
from civicconnect.models.department import Department  # noqa: F401
from civicconnect.models.profile import Profile  # noqa: F401
from civicconnect.models.issue import Issue, IssueAssignment, IssueVote  # noqa: F401
from civicconnect.models.tender import Tender, Bid  # noqa: F401
from civicconnect.models.work_progress import WorkProgress  # noqa: F401
from civicconnect.models.community import (  # noqa: F401
    CommunityPost,
    Feedback,
    MunicipalOfficial,
)
from civicconnect.models.notification import Notification  # noqa: F401
