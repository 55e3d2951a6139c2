# routes_quotes.py - Quotation PDF download
# The caller posts an already-fetched quotation graph; the PDF comes back as
# an attachment named <quotation_number>_Quotation.pdf.

import io
import logging

from flask import Blueprint, request, jsonify, send_file

from raisequote.forms.quote_generator import generate_quotation_pdf

log = logging.getLogger("raisequote.api")

bp = Blueprint("quotes", __name__)


def _bad_request(msg):
    return jsonify({"ok": False, "error": msg}), 400


@bp.route("/api/health")
def api_health():
    return jsonify({"ok": True})


@bp.route("/api/quotations/pdf", methods=["POST"])
def api_quotation_pdf():
    """Generate a quotation PDF and offer it for download."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request("JSON body required")

    quotation = data.get("quotation")
    items = data.get("items")
    if not isinstance(quotation, dict):
        return _bad_request("quotation must be an object")
    if not isinstance(items, list):
        return _bad_request("items must be a list")

    try:
        result = generate_quotation_pdf(
            quotation, items,
            settings=data.get("settings") or {},
            user=data.get("user") or {},
            selected_terms=data.get("selected_terms") or data.get("selectedTerms"),
            currency=data.get("currency"),
            validity=data.get("validity") or data.get("validityData"),
        )
    except Exception as e:
        log.exception("Quotation PDF failed for %s", quotation.get("quotation_number", "?"),
                      extra={"route": request.path, "method": request.method,
                             "quotation_number": quotation.get("quotation_number")})
        return jsonify({"ok": False, "error": str(e)}), 500

    resp = send_file(io.BytesIO(result["pdf"]), mimetype="application/pdf",
                     as_attachment=True, download_name=result["filename"])
    resp.headers["X-Page-Count"] = str(result["pages"])
    if result["missing_images"]:
        resp.headers["X-Missing-Images"] = ",".join(result["missing_images"])
    return resp
