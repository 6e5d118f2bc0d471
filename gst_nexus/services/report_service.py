import logging

import pandas as pd

from gst_nexus.services.demand_calculator import defect_summary, is_waived
from gst_nexus.utils.constants import HEAD_FIELDS, MINOR_HEADS

logger = logging.getLogger(__name__)

NO_ARN = "No ARN"
UNKNOWN = "Unknown"

REPORT_TYPES = {
    'clients': "Client-wise Demand",
    'cases': "ARN-wise Demand",
    'defects': "Defect Types",
    'status': "Status Summary",
}

MONEY_COLUMNS = ["Total Demand", "Total Paid", "Outstanding"]


def status_text(statuses):
    """'Closed (1), Received (2)' for a series of notice statuses."""
    counts = statuses.value_counts().sort_index()
    return ", ".join(f"{status} ({count})" for status, count in counts.items())


class ReportService:
    """
    Portfolio reports over the whole register. Every report is a DataFrame
    with display headers so the same frame feeds the Reports screen and the
    Excel export.

    Paid amounts count every payment on a notice, allocated or not, while
    demand is the stored demand_amount (waived defects already excluded).
    """

    def __init__(self, db):
        self.db = db

    def _notice_frame(self):
        notices = pd.DataFrame(self.db.get_all_notices(), columns=['id', 'gstin', 'arn', 'status', 'demand_amount'])
        payments = pd.DataFrame(self.db.get_all_payments(), columns=['notice_id', 'amount'])
        paid = payments.groupby('notice_id')['amount'].sum()

        notices['demand_amount'] = notices['demand_amount'].fillna(0).astype(float)
        notices['paid'] = notices['id'].map(paid).fillna(0).astype(float)
        notices['arn'] = [arn or NO_ARN for arn in notices['arn']]
        notices['status'] = [status or UNKNOWN for status in notices['status']]
        return notices

    @staticmethod
    def _finish(df, sort_by):
        df[MONEY_COLUMNS] = df[MONEY_COLUMNS].astype(float).round(2)
        return df.sort_values(sort_by, ascending=False, kind='mergesort').reset_index(drop=True)

    def client_report(self):
        """One row per taxpayer: demand against paid across all its notices."""
        notices = self._notice_frame()
        rows = []
        for taxpayer in self.db.get_all_taxpayers():
            own = notices[notices['gstin'] == taxpayer['gstin']]
            demand = own['demand_amount'].sum()
            paid = own['paid'].sum()
            rows.append({
                "Trade Name": taxpayer.get('trade_name') or "",
                "GSTIN": taxpayer['gstin'],
                "Notices": len(own),
                "Total Demand": demand,
                "Total Paid": paid,
                "Outstanding": demand - paid,
                "Statuses": status_text(own['status']),
            })
        columns = ["Trade Name", "GSTIN", "Notices", *MONEY_COLUMNS, "Statuses"]
        return self._finish(pd.DataFrame(rows, columns=columns), "Outstanding")

    def arn_report(self):
        """Notices grouped by case ARN; notices without one share a single row."""
        notices = self._notice_frame()
        rows = []
        for arn, group in notices.groupby('arn', sort=True):
            demand = group['demand_amount'].sum()
            paid = group['paid'].sum()
            rows.append({
                "ARN": arn,
                "Notices": len(group),
                "Total Demand": demand,
                "Total Paid": paid,
                "Outstanding": demand - paid,
                "Statuses": ", ".join(sorted(group['status'].unique())),
            })
        columns = ["ARN", "Notices", *MONEY_COLUMNS, "Statuses"]
        return self._finish(pd.DataFrame(rows, columns=columns), "Total Demand")

    def defect_type_report(self):
        """
        Totals per defect type, broken down by head field. Waived defects are
        counted but add nothing to the amounts.
        """
        totals = {}
        for defect in self.db.get_all_defects():
            key = defect.get('defect_type') or UNKNOWN
            row = totals.setdefault(key, {"Defect Type": key, "Defects": 0, "Waived": 0,
                                          **{MINOR_HEADS[f]: 0.0 for f in HEAD_FIELDS}})
            row["Defects"] += 1
            if is_waived(defect):
                row["Waived"] += 1
                continue
            for field, amount in defect_summary(defect).items():
                row[MINOR_HEADS[field]] += amount

        columns = ["Defect Type", "Defects", "Waived", *[MINOR_HEADS[f] for f in HEAD_FIELDS], "Total Demand"]
        df = pd.DataFrame(list(totals.values()), columns=columns[:-1])
        heads = [MINOR_HEADS[f] for f in HEAD_FIELDS]
        df[heads] = df[heads].astype(float).round(2)
        df["Total Demand"] = df[heads].sum(axis=1).round(2)
        df = df.sort_values(["Defects", "Defect Type"], ascending=[False, True])
        return df.reset_index(drop=True)

    def status_report(self):
        notices = self._notice_frame()
        rows = []
        for status, group in notices.groupby('status', sort=True):
            demand = group['demand_amount'].sum()
            paid = group['paid'].sum()
            rows.append({
                "Status": status,
                "Notices": len(group),
                "Total Demand": demand,
                "Total Paid": paid,
                "Outstanding": demand - paid,
            })
        columns = ["Status", "Notices", *MONEY_COLUMNS]
        return self._finish(pd.DataFrame(rows, columns=columns), "Notices")

    def build(self, report_type):
        builders = {
            'clients': self.client_report,
            'cases': self.arn_report,
            'defects': self.defect_type_report,
            'status': self.status_report,
        }
        if report_type not in builders:
            raise ValueError(f"Unknown report: {report_type}")
        return builders[report_type]()

    def export_report(self, report_type, file_path):
        """
        Write one report to Excel (or CSV by extension). report_type 'all'
        writes every report to its own sheet of a single workbook.
        """
        try:
            if report_type == 'all':
                with pd.ExcelWriter(file_path, engine='openpyxl') as writer:
                    for key, title in REPORT_TYPES.items():
                        self.build(key).to_excel(writer, index=False, sheet_name=title)
                logger.info(f"Exported all reports to {file_path}")
                return True, len(REPORT_TYPES)

            df = self.build(report_type)
            if file_path.lower().endswith('.csv'):
                df.to_csv(file_path, index=False)
            else:
                df.to_excel(file_path, index=False, sheet_name="Report")
            logger.info(f"Exported {report_type} report ({len(df)} rows) to {file_path}")
            return True, len(df)
        except (OSError, ValueError) as e:
            logger.error(f"Error exporting {report_type} report: {e}")
            return False, str(e)
