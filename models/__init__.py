# Import every model so Base.metadata knows all tables
from models import abuse_event, blocked_ip, click_record, short_link  # noqa: F401
