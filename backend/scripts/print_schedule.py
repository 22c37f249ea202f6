import json
import sys

from backend.app import gantt_service
from backend.app.CPA import format_schedule
from backend.app.db.database import SessionLocal, init_db


def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    if not argv:
        raise SystemExit("usage: python -m backend.scripts.print_schedule <project_id> [--json]")
    project_id = argv[0]

    init_db()
    db = SessionLocal()
    try:
        data = gantt_service.get_schedule(db, project_id)
        result = gantt_service.get_critical_path(db, project_id)
    finally:
        db.close()

    if "--json" in argv[1:]:
        print(json.dumps(result.model_dump(), indent=2))
    else:
        print(format_schedule(data, result))


if __name__ == "__main__":
    main()
