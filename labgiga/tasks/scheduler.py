import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Runs the overdue sweep in the background.
    - Skipped when SCHEDULER_ENABLED is off (tests, extra workers).
    - Skipped in the debug reloader's watcher process so the job runs once.
    """
    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] disabled by config.")
        return None

    # the reloader's parent process only watches files
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] debug reloader parent process: scheduler skipped.")
        return None

    # imported here to avoid a circular import through the services
    from labgiga.tasks.overdue_check import run_overdue_check_job

    minutes = app.config.get("OVERDUE_CHECK_MINUTES", 10)
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=run_overdue_check_job,
        args=[app],
        trigger=IntervalTrigger(minutes=minutes),
        id="overdue_check_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )

    try:
        scheduler.start()
    except Exception as e:
        app.logger.warning(f"[scheduler] could not start: {e}")
        return None

    app.logger.info(f"[scheduler] overdue check started (every {minutes} minutes).")
    app.extensions["apscheduler"] = scheduler
    atexit.register(lambda: scheduler.shutdown(wait=False) if scheduler.running else None)
    return scheduler
