from __future__ import annotations

import csv
import io

from flask import Flask, render_template

from ..common.authorization import roles_required
from ..common.datetime_utils import now_local
from ..core.enums import HISTORY_STATUSES, REVIEWER_ROLES
from ..container import Container
from .service import REPORT_FIELDS, ReportData


def register(app: Flask, container: Container) -> None:
    def _write_report_csv(*, data: ReportData, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/Claims/Payouts", methods=["GET"], endpoint="payout_report")
    @roles_required(*REVIEWER_ROLES)
    def payout_report():
        data = container.report_service.build_payout_report()
        return render_template(
            "claims/payouts.html",
            rows=data.rows,
            summary=data.summary,
            active_page="payout_report",
        )

    @app.route("/Claims/ClaimHistory/Export", methods=["GET"], endpoint="claim_history_export")
    @roles_required(*REVIEWER_ROLES)
    def claim_history_export():
        data = container.report_service.build_payout_report(statuses=HISTORY_STATUSES)
        filename = f"claim_history_{now_local().strftime('%Y%m%d')}.csv"
        return _write_report_csv(data=data, filename=filename)
