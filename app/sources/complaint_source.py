"""
Complaint collection reader
"""
from typing import Any, Dict, List

from app.models import Complaint
from app.sources.base_source import BaseSource


class ComplaintSource(BaseSource[Complaint]):
    """Full-table reader for the complaints collection"""

    def __init__(self, **kwargs):
        super().__init__("complaints", **kwargs)

    def _parse_row(self, row: Dict[str, Any]) -> Complaint:
        return Complaint.model_validate(row)

    async def list_complaints(self) -> List[Complaint]:
        return await self.fetch_all()
