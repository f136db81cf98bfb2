# Ensure project root is on sys.path so 'ircstatus' and 'tests.fixtures' are importable
# when running pytest from environments that don't automatically include it.
import os
import sys
from pathlib import Path

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Defaults in ircstatus.constants are read from the environment at import time;
# tests expect the built-in values.
for _name in [n for n in os.environ if n.startswith("IRCSTATUS_")]:
    del os.environ[_name]
os.environ.pop("DEBUG", None)
