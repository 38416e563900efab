# @role: Builds the background scheduler that drives the price simulator
# @used_by: main.py
# @filter_type: system
# @tags: scheduler, interval, background
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR, JobExecutionEvent

from config.logging_config import get_loggers

logger, trade_logger = get_loggers()

PRICE_TICK_JOB_ID = "price_tick"


def safe_job_runner(func, job_id: str):
    """Run `func` with structured logging and exception capture."""
    try:
        logger.debug("▶ Job %s starting", job_id)
        func()
        logger.debug("✔ Job %s completed successfully", job_id)
    except Exception:
        logger.exception("✖ Job %s failed with exception", job_id)


def job_listener(event: JobExecutionEvent):
    """Catch any errors after each job run."""
    if event.exception:
        logger.error("❌ Job %s raised an exception: %s", event.job_id, event.exception)


def build_scheduler(simulator, interval_seconds: float = 5.0, scheduler: BackgroundScheduler = None) -> BackgroundScheduler:
    """
    Return a (not yet started) scheduler with one interval job that ticks
    ``simulator``. Pass ``scheduler`` to register the job on an existing one.
    """
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")

    scheduler = scheduler or BackgroundScheduler(timezone="UTC")
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    # Simulated price tick every `interval_seconds`
    scheduler.add_job(
        func=lambda: safe_job_runner(simulator.tick, PRICE_TICK_JOB_ID),
        trigger=IntervalTrigger(seconds=interval_seconds),
        id=PRICE_TICK_JOB_ID,
        name="Simulate Stock Price Tick",
        replace_existing=True,
        max_instances=1,
        coalesce=True,            # collapse overlapping runs
        misfire_grace_time=int(max(1, interval_seconds)),
    )
    return scheduler


def start(scheduler: BackgroundScheduler):
    if not scheduler.running:
        scheduler.start()
        logger.info("✅ APScheduler started")


def shutdown(scheduler: BackgroundScheduler):
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("🛑 APScheduler shut down")
