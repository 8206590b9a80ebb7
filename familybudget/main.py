import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from familybudget.config import CORS_ORIGINS
from familybudget.database import init_db
from familybudget.routes.activity_routes import router as activity_router
from familybudget.routes.auth_routes import router as auth_router
from familybudget.routes.budget_item_routes import router as budget_item_router
from familybudget.routes.budget_routes import router as budget_router
from familybudget.routes.group_routes import router as group_router
from familybudget.routes.transaction_routes import router as transaction_router
from familybudget.routes.user_routes import router as user_router

logger = logging.getLogger(__name__)

# Initialize db configuration
try:
    init_db()
except Exception as e:
    logger.error(f"Database init skipped or failed: {e}")

app = FastAPI(title="Family Budget API")


@app.get("/api/health-check")
async def health():
    return {"success": True, "status": "ok", "message": "Backend is alive!"}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        # drop the leading "body"/"query"/"path" marker
        loc = [str(part) for part in err.get("loc", ())[1:]]
        details.append({"field": ".".join(loc) or None, "message": err.get("msg", "")})
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Validation error", "details": details},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(group_router)
app.include_router(budget_router)
app.include_router(budget_item_router)
app.include_router(transaction_router)
app.include_router(activity_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("familybudget.main:app", host="0.0.0.0", port=8000, reload=True)
