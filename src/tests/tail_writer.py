"""
Helper script to test 'tail -f' functionality, including log rotation.

Terminal 1: python -m tests.tail_writer [--rotate-every N]
Terminal 2: tstail -f tail_test_output.txt
"""

import argparse
import time
from pathlib import Path

OUTPUT_FILE = Path(__file__).parent / "tail_test_output.txt"

def main(args_list=None):
    parser = argparse.ArgumentParser(description="Append timestamped lines to a file for tail -f testing.")
    parser.add_argument("--rotate-every", type=int, default=0,
                        help="Truncate the file after every N lines (0 = never).")
    parser.add_argument("--interval", type=float, default=2.0,
                        help="Seconds between lines (default: 2).")
    args = parser.parse_args(args_list)

    print(f"Writing to: {OUTPUT_FILE}")
    print("Press Ctrl+C to stop\n")

    # Clear/create the file
    OUTPUT_FILE.write_text("")

    count = 1
    try:
        while True:
            if args.rotate_every and count > 1 and (count - 1) % args.rotate_every == 0:
                OUTPUT_FILE.write_text("")
                print("Truncated.")
            line = f"Line {count} - timestamp {time.strftime('%H:%M:%S')}\n"
            with open(OUTPUT_FILE, "a") as f:
                f.write(line)
            print(f"Wrote: {line.strip()}")
            count += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        print("\nStopped.")

if __name__ == "__main__":
    main()
