import io

from flask import Blueprint, current_app, jsonify, request, send_file

from .conversion import (
    SUPPORTED_ENCODINGS,
    ConversionError,
    convert,
    decode_unip,
    load_meet_bytes,
    parse_unip,
    validate_rows,
)

bp = Blueprint("main", __name__)

LENEX_UPLOAD_FIELD = "lenex"
UNIP_UPLOAD_FIELD = "unip"
ENCODING_FORM_FIELD = "encoding"
WARNING_HEADER = "X-Conversion-Warning"
LENEX_MIMETYPE = "application/xml"

ACCEPTED_LENEX_EXTENSIONS = (".lef", ".xml")
ACCEPTED_UNIP_EXTENSIONS = (".txt", ".csv")


def _uploaded_bytes(field_name: str, *, required: bool = True):
    upload = request.files.get(field_name)
    if upload is None or not upload.filename:
        if required:
            raise ConversionError(f'Missing "{field_name}" file upload.')
        return None
    return upload.read()


def _selected_encoding() -> str:
    return request.form.get(ENCODING_FORM_FIELD) or current_app.config["UNIP_DEFAULT_ENCODING"]


def _load_meet(*, required: bool = True):
    data = _uploaded_bytes(LENEX_UPLOAD_FIELD, required=required)
    if data is None:
        return None
    return load_meet_bytes(data)


def _load_unip():
    data = _uploaded_bytes(UNIP_UPLOAD_FIELD)
    return parse_unip(decode_unip(data, _selected_encoding()))


@bp.errorhandler(ConversionError)
def _conversion_error(exc: ConversionError):
    current_app.logger.info("Rejected upload: %s", exc)
    return jsonify({"error": str(exc)}), 400


@bp.route("/")
def index():
    return jsonify(
        {
            "service": "UNI_p to Lenex",
            "encodings": list(SUPPORTED_ENCODINGS),
            "default_encoding": current_app.config["UNIP_DEFAULT_ENCODING"],
            "lenex_extensions": list(ACCEPTED_LENEX_EXTENSIONS),
            "unip_extensions": list(ACCEPTED_UNIP_EXTENSIONS),
            "endpoints": {
                "meet": "/api/lenex",
                "registrations": "/api/unip",
                "convert": "/api/convert",
            },
        }
    )


@bp.route("/api/lenex", methods=["POST"])
def inspect_meet():
    meet = _load_meet()
    return jsonify(meet.as_dict())


@bp.route("/api/unip", methods=["POST"])
def inspect_registrations():
    meet = _load_meet(required=False)
    unip = _load_unip()
    report = validate_rows(unip, meet)
    payload = report.as_dict()
    payload["encoding"] = _selected_encoding()
    payload["has_meet"] = meet is not None
    return jsonify(payload)


@bp.route("/api/convert", methods=["POST"])
def convert_entries():
    meet = _load_meet()
    unip = _load_unip()
    result = convert(unip, meet)
    current_app.logger.info(
        "Exported %d entry(ies) for %r into %s",
        result.exported_rows,
        unip.club_name,
        result.filename,
    )

    response = send_file(
        io.BytesIO(result.xml),
        mimetype=LENEX_MIMETYPE,
        as_attachment=True,
        download_name=result.filename,
    )
    if result.warning:
        response.headers[WARNING_HEADER] = result.warning
    return response
