from __future__ import annotations

from vr_run_start_stop.runtime.lifecycle import main


if __name__ == "__main__":
    raise SystemExit(main())
