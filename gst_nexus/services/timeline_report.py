import logging
import os
from datetime import date

from gst_nexus.utils.template_engine import TemplateEngine

logger = logging.getLogger(__name__)

TIMELINE_TEMPLATE = "case_timeline.html"


class TimelineReport:
    """Tabular case-timeline report: Jinja2 HTML printed to PDF through Qt."""

    def __init__(self, db):
        self.db = db

    def build_context(self, arn, today=None):
        return {
            'case_id': arn,
            'office_name': self.db.config.get_setting('office_name', 'GST Nexus'),
            'generated_on': (today or date.today()).isoformat(),
            'notices': self.db.get_notices_by_arn(arn),
            'events': self.db.get_case_timeline(arn),
        }

    def render_html(self, arn, today=None):
        return TemplateEngine.render_document(TIMELINE_TEMPLATE, self.build_context(arn, today))

    @staticmethod
    def save_pdf(html_content, output_path):
        """Generates PDF using Qt's internal printer"""
        from PyQt6.QtCore import QMarginsF
        from PyQt6.QtGui import QPageLayout, QPageSize, QTextDocument
        from PyQt6.QtPrintSupport import QPrinter

        try:
            os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
            doc = QTextDocument()
            doc.setHtml(html_content)
            printer = QPrinter()
            printer.setOutputFormat(QPrinter.OutputFormat.PdfFormat)
            printer.setOutputFileName(output_path)

            layout = QPageLayout(
                QPageSize(QPageSize.PageSizeId.A4),
                QPageLayout.Orientation.Landscape,
                QMarginsF(12, 12, 12, 12)
            )
            printer.setPageLayout(layout)

            doc.print(printer)
            return True, output_path
        except (OSError, RuntimeError) as e:
            logger.error(f"Error generating timeline PDF: {e}")
            return False, str(e)

    def export_pdf(self, arn, output_path):
        if not self.db.get_notices_by_arn(arn):
            return False, "No notices found for this ARN"
        return self.save_pdf(self.render_html(arn), output_path)
