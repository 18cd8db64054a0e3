"""Replay a GPX recording through the live tracker and print the result.

Usage:
  python scripts/replay_gpx.py path/to/run.gpx --segment-size 500
  python scripts/replay_gpx.py path/to/run.gpx --save   # store it like a live run
"""

import argparse
import logging

from app.core.time_utils import format_pace, format_time, seconds_to_hhmmss
from app.db import Base, SessionLocal, engine
from app.replay import replay_gpx
from app.store import save_activity


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", help="GPX file to replay")
    parser.add_argument("--segment-size", type=int, default=None, help="Split length in metres")
    parser.add_argument("--save", action="store_true", help="Persist the replayed session")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    record = replay_gpx(args.path, args.segment_size)

    print(f"Distance:  {record.distance_m:.1f} m")
    print(f"Time:      {seconds_to_hhmmss(int(round(record.total_time_s)))}")
    print(f"Avg pace:  {format_pace(record.average_pace_s_per_km)} /km")
    print(f"Elevation: +{record.elevation_gain_m:.0f} m")
    for s in record.segments:
        flag = " (partial)" if s.partial else ""
        print(f"  {s.distance_label_m:>6} m  {format_time(s.elapsed_s)}  {format_pace(s.pace_s_per_km)} /km{flag}")

    if args.save:
        if record.distance_m <= 0:
            print("No distance recorded; nothing saved")
            return
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            activity = save_activity(db, record)
        finally:
            db.close()
        print(f"Saved activity {activity.id}")


if __name__ == "__main__":
    main()
