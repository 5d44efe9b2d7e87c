"""
run.py - Helper script to run the server
"""

import uvicorn

from school_timetable import config

if __name__ == "__main__":
    print("Starting School Timetable Auto-Scheduler")
    print(f"Environment: {config.ENV}")
    print(f"URL: http://localhost:{config.PORT}")
    print(f"Docs: http://localhost:{config.PORT}/docs")
    print()

    if config.ENV == "development":
        uvicorn.run(
            "school_timetable.main:app",
            host="0.0.0.0",
            port=config.PORT,
            reload=True,
            log_level="info"
        )
    else:
        uvicorn.run(
            "school_timetable.main:app",
            host="0.0.0.0",
            port=config.PORT,
            # class write locks are per process, so keep a single worker
            workers=1,
            log_level="info"
        )
