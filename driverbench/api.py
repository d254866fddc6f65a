from fastapi import FastAPI

from driverbench.config import BenchmarkSettings
from driverbench.router.router import BenchmarkRouter

settings = BenchmarkSettings()
app = FastAPI(title="driverbench")
router = BenchmarkRouter(settings=settings)
app.include_router(router)
