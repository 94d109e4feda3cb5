import logging
import os
import subprocess
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ladder.database import engine, init_db
from ladder.db_schema_patch import ensure_standing_columns, ensure_tier_slot_columns
from ladder.routes import formats, leagues, rankings, schedule, scores, standings

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Ladder League API")


# Get build info
def get_build_info():
    """Get git commit hash or build timestamp"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=os.path.dirname(os.path.dirname(__file__)),
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass

    # Fallback to build timestamp
    return datetime.now().strftime("%Y%m%d-%H%M%S")


BUILD_HASH = get_build_info()

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(formats.router, prefix="/api", tags=["formats"])
app.include_router(leagues.router, prefix="/api", tags=["leagues"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])
app.include_router(scores.router, prefix="/api", tags=["scores"])
app.include_router(standings.router, prefix="/api", tags=["standings"])
app.include_router(rankings.router, prefix="/api", tags=["rankings"])


@app.on_event("startup")
def on_startup():
    init_db()
    ensure_standing_columns(engine)
    ensure_tier_slot_columns(engine)

    # Print all registered routes for debugging
    print("\n" + "=" * 80)
    print("REGISTERED ROUTES")
    print("=" * 80)
    route_count = 0
    for r in app.routes:
        methods = getattr(r, "methods", None)
        path = getattr(r, "path", None)
        if path:
            methods_str = ", ".join(sorted(methods)) if methods else "N/A"
            print(f"{methods_str:20} {path}")
            route_count += 1
    print("=" * 80)
    print(f"Total routes: {route_count}")
    print(f"Build hash: {BUILD_HASH}")
    print("=" * 80 + "\n")


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": "Ladder League API", "build_hash": BUILD_HASH, "status": "healthy"}


@app.get("/")
def root():
    return {"message": "Ladder League API"}
