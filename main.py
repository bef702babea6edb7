import logging
import math
from typing import Optional, Sequence

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from aggregation import year_totals
from config import get_settings
from csv_utils import export_table, parse_date
from database import SessionLocal, init_db, session_scope
from entities import (
    Category,
    CategoryYear,
    DataRow,
    Investment,
    Record,
    format_cents,
)
from filters import FilterOpts
from lookup import CategoryLookup
from periods import resolve_period
from row_mapper import RowDecodeError, RowSourceError
from schemas import CategoryIn, InvestmentIn, RecordIn
from services import (
    CategoryService,
    InvestmentService,
    NotFoundError,
    RecordService,
    SummaryService,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Ledger")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.on_event("startup")
def startup_event():
    init_db()
    with session_scope() as db:
        category_count = len(CategoryService(db).list_all())
    logger.info(f"Ledger database ready: categories={category_count}")


@app.exception_handler(RowDecodeError)
@app.exception_handler(RowSourceError)
async def row_mapping_error_handler(request: Request, exc: Exception):
    logger.error(f"row_mapping_failed: path={request.url.path} error={exc}")
    return JSONResponse(
        status_code=500, content={"detail": "Stored data could not be read"}
    )


def _parse_cost(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Cost bound must be a finite number: {value}")
    return number


def _parse_category(value: str, lookup: Optional[CategoryLookup]) -> int:
    """Accept a category id or, given a lookup, a category name."""
    try:
        return int(value)
    except ValueError:
        category_id = lookup.id_for_name(value) if lookup is not None else None
        if category_id is None:
            raise ValueError(f"Unknown category: {value}") from None
        return category_id


def filter_opts_from_request(
    request: Request, lookup: Optional[CategoryLookup] = None
) -> FilterOpts:
    params = request.query_params
    opts = FilterOpts()
    try:
        if params.get("min"):
            opts = opts.with_min_cost(_parse_cost(params["min"]))
        if params.get("max"):
            opts = opts.with_max_cost(_parse_cost(params["max"]))
        if params.get("period"):
            period = resolve_period(
                params["period"], params.get("start"), params.get("end")
            )
            opts = opts.with_date_range(period.start, period.end)
        else:
            if params.get("start"):
                opts = opts.with_start_date(parse_date(params["start"]))
            if params.get("end"):
                opts = opts.with_end_date(parse_date(params["end"]))
        category_ids = [
            _parse_category(value, lookup)
            for value in params.getlist("category")
            if value
        ]
        if category_ids:
            opts = opts.with_cat_ids(category_ids)
        if params.get("code"):
            opts = opts.with_code(params["code"].strip())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return opts


def render_table(
    headers: Sequence[str],
    rows: Sequence[DataRow],
    lookup: Optional[CategoryLookup] = None,
) -> dict[str, object]:
    return {
        "columns": list(headers),
        "rows": [row.spread_to_strings(lookup) for row in rows],
    }


@app.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    return render_table(Category.headers, CategoryService(db).list_all())


@app.get("/categories/names")
def list_category_names(db: Session = Depends(get_db)):
    return {"names": CategoryService(db).lookup().names()}


@app.post("/categories")
def create_category(data: CategoryIn, db: Session = Depends(get_db)):
    try:
        category = CategoryService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return render_table(Category.headers, [category])


@app.post("/categories/{category_id}")
def update_category(category_id: int, data: CategoryIn, db: Session = Depends(get_db)):
    try:
        category = CategoryService(db).update(category_id, data)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return render_table(Category.headers, [category])


@app.post("/categories/{category_id}/delete")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    try:
        CategoryService(db).delete(category_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"deleted": category_id}


@app.get("/records")
def list_records(request: Request, db: Session = Depends(get_db)):
    lookup = CategoryService(db).lookup()
    opts = filter_opts_from_request(request, lookup)
    return render_table(Record.headers, RecordService(db).list(opts), lookup)


@app.get("/records/export.csv")
def export_records(request: Request, db: Session = Depends(get_db)):
    lookup = CategoryService(db).lookup()
    opts = filter_opts_from_request(request, lookup)
    content = export_table(Record.headers, RecordService(db).list(opts), lookup)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="records.csv"'},
    )


@app.post("/records")
def create_record(data: RecordIn, db: Session = Depends(get_db)):
    record = RecordService(db).create(data)
    lookup = CategoryService(db).lookup()
    return render_table(Record.headers, [record], lookup)


@app.post("/records/{record_id}")
def update_record(record_id: int, data: RecordIn, db: Session = Depends(get_db)):
    try:
        record = RecordService(db).update(record_id, data)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    lookup = CategoryService(db).lookup()
    return render_table(Record.headers, [record], lookup)


@app.post("/records/{record_id}/delete")
def delete_record(record_id: int, db: Session = Depends(get_db)):
    try:
        RecordService(db).delete(record_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"deleted": record_id}


@app.get("/investments")
def list_investments(request: Request, db: Session = Depends(get_db)):
    opts = filter_opts_from_request(request)
    return render_table(Investment.headers, InvestmentService(db).list(opts))


@app.get("/investments/codes")
def list_investment_codes(db: Session = Depends(get_db)):
    return {"codes": InvestmentService(db).codes()}


@app.post("/investments")
def create_investment(data: InvestmentIn, db: Session = Depends(get_db)):
    investment = InvestmentService(db).create(data)
    return render_table(Investment.headers, [investment])


@app.post("/investments/{investment_id}")
def update_investment(
    investment_id: int, data: InvestmentIn, db: Session = Depends(get_db)
):
    try:
        investment = InvestmentService(db).update(investment_id, data)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return render_table(Investment.headers, [investment])


@app.post("/investments/{investment_id}/delete")
def delete_investment(investment_id: int, db: Session = Depends(get_db)):
    try:
        InvestmentService(db).delete(investment_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"deleted": investment_id}


def _check_year(year: int) -> None:
    if not 1 <= year <= 9998:
        raise HTTPException(status_code=400, detail="Year out of range")


@app.get("/summary/{year}")
def year_summary_table(year: int, db: Session = Depends(get_db)):
    _check_year(year)
    summaries = SummaryService(db).year_summary(year)
    table = render_table(CategoryYear.headers, summaries, CategoryService(db).lookup())
    table["totals"] = ["Total"] + [format_cents(c) for c in year_totals(summaries)]
    return table


@app.get("/summary/{year}/categories/{category_id}")
def category_year_table(year: int, category_id: int, db: Session = Depends(get_db)):
    _check_year(year)
    summary = SummaryService(db).category_year(category_id, year)
    return render_table(CategoryYear.headers, [summary], CategoryService(db).lookup())


def main():
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=False)


if __name__ == "__main__":
    main()
