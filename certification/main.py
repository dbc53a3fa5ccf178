import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from certification.certificates.router import router as certificates_router
from certification.database import dispose_db, init_db
from certification.dependencies import get_settings
from shared.middleware.error_handler import error_envelope_middleware, http_exception_handler
from shared.middleware.request_id import request_id_middleware

logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.certification_database_url)

    yield

    await dispose_db()


SWAGGER_DESCRIPTION = """\
## Course Certification Service

Issues, renders and verifies tamper-evident course completion certificates.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Certificates** | Issuance, revoke/renew/expire, PDF view/download, public QR verification |

### Authentication

All endpoints except health check and certificate verification require a
JWT Bearer token carrying the `admin` or `super_admin` role.

### Status Transitions

```
Certificate: ACTIVE → EXPIRED → ACTIVE (renew)
             ACTIVE | EXPIRED → REVOKED (terminal)
```
"""


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Course Certification",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(certificates_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "certification"}

    return app


app = create_app()
