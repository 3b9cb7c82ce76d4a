from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    SEARCH_STARTED = "search_started"
    VIDEOS_UPDATED = "videos_updated"
    CITATIONS_UPDATED = "citations_updated"
    NO_RESULTS = "no_results"
    SEARCH_COMPLETE = "search_complete"
    LINK_CHECKED = "link_checked"
    ENRICHMENT_COMPLETED = "enrichment_completed"
    ERROR = "error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        return f"event: {self.event.value}\ndata: {json.dumps(self.data)}\n\n"
