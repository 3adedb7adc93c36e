"""
Export service for generating CSV and PDF analytics exports
"""
import csv
import io
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.logging_config import logger
from app.models import AnalyticsBuckets, Complaint, FilterSpec, TimelineGranularity

CSV_HEADERS = ['ID', 'Category', 'Status', 'College', 'Urgency', 'Submission Date']


def export_filename(now: Optional[datetime] = None, extension: str = "csv") -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"complaints-analytics-{stamp}.{extension}"


class ExportService:
    """Service for exporting filtered complaints and analytics"""

    def __init__(self):
        self.styles = getSampleStyleSheet()

    def export_to_csv(self, complaints: Sequence[Complaint]) -> str:
        """
        Export the filtered complaint set, one row per complaint

        Args:
            complaints: Complaints after analytics filtering

        Returns:
            CSV content with every field quoted
        """
        output = io.StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
        writer.writerow(CSV_HEADERS)

        for complaint in complaints:
            writer.writerow([
                complaint.id,
                complaint.category or '',
                complaint.status or '',
                complaint.college or '',
                complaint.urgency or '',
                complaint.display_date,
            ])

        csv_content = output.getvalue()
        output.close()

        logger.info(f"Exported {len(complaints)} complaints to CSV")
        return csv_content

    def _bucket_table(self, title: str, buckets: Dict[str, int], total: int) -> List:
        story = [Paragraph(title, self.styles['Heading2'])]
        if not buckets:
            story.append(Paragraph("No data.", self.styles['Normal']))
            return story

        rows = [['Bucket', 'Count', 'Share']]
        for name, count in buckets.items():
            share = (count / total) * 100 if total else 0
            rows.append([name, str(count), f"{share:.1f}%"])

        table = Table(rows, hAlign='LEFT')
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black)
        ]))
        story.append(table)
        return story

    def export_to_pdf(
        self,
        buckets: AnalyticsBuckets,
        filters: FilterSpec,
        granularity: TimelineGranularity,
    ) -> bytes:
        """
        Export an analytics summary report

        Args:
            buckets: Aggregated analytics
            filters: Filters the buckets were computed with
            granularity: Timeline granularity

        Returns:
            PDF content as bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=letter)

        title_style = ParagraphStyle(
            'ReportTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            spaceAfter=20,
            textColor=colors.darkred
        )
        story = [
            Paragraph("Complaint Analytics", title_style),
            Paragraph(
                f"Range: {filters.time_range.value} | Category: {filters.category or 'all'} | "
                f"Status: {filters.status or 'all'} | Urgency: {filters.urgency or 'all'}",
                self.styles['Normal']
            ),
            Paragraph(f"Total complaints: {buckets.total}", self.styles['Normal']),
            Spacer(1, 16),
        ]

        sections = [
            ("By category", buckets.by_category),
            ("By status", buckets.by_status),
            ("By urgency", buckets.by_urgency),
            (f"Timeline ({granularity.value})", buckets.by_timeline),
        ]
        for title, mapping in sections:
            story.extend(self._bucket_table(title, mapping, buckets.total))
            story.append(Spacer(1, 16))

        doc.build(story)
        pdf_content = buffer.getvalue()
        buffer.close()

        logger.info(f"Exported analytics report for {buckets.total} complaints to PDF")
        return pdf_content
