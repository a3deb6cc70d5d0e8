import base64
import hashlib

from fastapi import FastAPI, HTTPException

from .errors import CSVWriterError
from .models import HealthResponse, RenderRequest, RenderResponse, WriterOptions
from .rules import EnclosureRule
from .writer import CSVWriter

app = FastAPI(
    title="csv-buffer-writer",
    description="Buffered CSV rendering with configurable delimiters, enclosure and encoding",
    version="0.1.0",
)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_writer(options: WriterOptions) -> CSVWriter:
    writer = (
        CSVWriter()
        .set_column_delimiter(options.column_delimiter)
        .set_line_delimiter(options.line_delimiter)
        .set_enclosure_rule(EnclosureRule[options.enclosure.upper()])
    )
    if options.source_encoding is not None:
        writer.set_encodings(options.source_encoding, options.target_encoding)
    return writer


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/render", response_model=RenderResponse)
def render_csv(req: RenderRequest):
    try:
        writer = build_writer(req.options)
    except CSVWriterError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())

    writer.add_lines(req.rows)
    payload, report = writer.render_report()

    return {
        "rendered_csv": {
            "sha256": _sha256_hex(payload),
            "encoding": writer.output_encoding,
            "rows": len(writer),
            "content_b64": base64.b64encode(payload).decode("ascii"),
        },
        "report": report,
    }
