"""
SRAG Dashboard API - Read endpoints for indicators, case series and regions.
Following Cosmic Python pattern: thin API layer delegates to views.
"""
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import create_engine
import uvicorn
import logging

import config
from srag_dp import views
from srag_dp.adapters import orm
from srag_dp.domain.domain import CaseFilter, GroupBy, Period
from srag_dp.service_layer.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

# Configure logging
logging.basicConfig(level=config.get_log_level())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SRAG Dashboard API",
    description="Epidemiological indicators computed from SRAG case records",
    version="1.0.0"
)


# Initialize database and ORM mappers (Cosmic Python pattern)
@app.on_event("startup")
def startup_event():
    engine = create_engine(config.get_postgres_uri())
    orm.metadata.create_all(engine)
    orm.start_mappers()
    logger.info("SRAG database initialized")


def get_uow() -> AbstractUnitOfWork:
    return SqlAlchemyUnitOfWork()


# ---------- Response models ----------

class MetricValueResponse(BaseModel):
    value: float
    period: Optional[str] = None
    referenceDate: Optional[str] = None


class MetricsResponse(BaseModel):
    caseRate: MetricValueResponse
    mortalityRate: MetricValueResponse
    icuRate: MetricValueResponse
    vaccinationRate: MetricValueResponse
    source: str


class CaseBucketResponse(BaseModel):
    date: str
    count: int


class CasesResponse(BaseModel):
    data: List[CaseBucketResponse]
    total: int


class RegionResponse(BaseModel):
    estado: str
    municipios: List[str]


# ---------- Endpoints ----------

@app.get("/api/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/api/metrics", response_model=MetricsResponse, response_model_exclude_none=True)
def get_metrics(
    period: Period = Period.MONTHLY,
    estado: Optional[str] = None,
    municipio: Optional[str] = None,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Get case growth, mortality, ICU and vaccination rates.

    Returns precomputed snapshots when available for the period and region,
    otherwise aggregates live; `source` tells which one answered.
    """
    try:
        case_filter = CaseFilter(estado=estado, municipio=municipio)
        return views.get_metrics(period.value, case_filter, uow).to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error computing metrics for {estado or municipio or 'national'}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/cases", response_model=CasesResponse)
def get_cases(
    group_by: GroupBy = Query(GroupBy.MONTHLY, alias="groupBy"),
    estado: Optional[str] = None,
    municipio: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Get case counts grouped by day, month or year.

    Without startDate/endDate the trailing 365 days are returned.
    """
    try:
        case_filter = CaseFilter(
            estado=estado,
            municipio=municipio,
            start_date=start_date,
            end_date=end_date,
        )
        return views.get_cases(group_by.value, case_filter, uow)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error retrieving case series: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/regions", response_model=List[RegionResponse])
def get_regions(uow: AbstractUnitOfWork = Depends(get_uow)):
    """List every state with its municipalities, for the dashboard filters."""
    try:
        return views.get_regions(uow)
    except Exception as e:
        logger.error(f"Error listing regions: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


def main():
    """Serve the API with uvicorn on API_HOST:API_PORT."""
    uvicorn.run(app, log_level=config.get_log_level().lower(), **config.get_api_host_and_port())


if __name__ == "__main__":
    main()
