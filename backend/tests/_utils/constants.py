"""Fixed instants shared by the test suite."""

from datetime import datetime, timezone

# Monday 2025-03-03 09:00 UTC
NOW = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)
# Tuesday 2025-03-04 10:00 UTC, first occurrence of the default template
ANCHOR = datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)
