"""Store collaborators: abstract contracts and their SQLAlchemy implementations."""

from .abuse_log import SqlAbuseEventLog  # noqa: F401
from .block_list import SqlBlockList  # noqa: F401
from .click_history import SqlClickHistory  # noqa: F401
from .link_store import SqlLinkStore  # noqa: F401
