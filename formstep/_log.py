import os, sys, datetime

DEBUG = os.getenv("FORMSTEP_DEBUG") == "1"

def log(*args):
    """Print only when FORMSTEP_DEBUG=1 is set"""
    if not DEBUG:
        return
    ts = datetime.datetime.now().strftime("%H:%M:%S")
    print(f"[formstep {ts}]", *args, file=sys.stderr, flush=True)
