import shutil

from fastapi import FastAPI

from veriframe.app.api import routes_analyses, routes_analyze
from veriframe.domain.settings import AnalysisSettings

app = FastAPI(title="VeriFrame API", version="0.1.0")
app.include_router(routes_analyses.router)
app.include_router(routes_analyze.router)


@app.get("/health")
async def health():
    """Liveness plus whether an ffmpeg binary is reachable for new analyses."""
    binary = AnalysisSettings.from_env().ffmpeg_binary or "ffmpeg"
    return {"status": "ok", "ffmpeg": shutil.which(binary) is not None}
