"""Schema migration steps, one module per version.

To add a step, create `vNNNN_<name>.py` with `version`, `previous_version`
and an `upgrade()` using `alembic.op`, then list it in `all_steps`.
"""

from . import v0001_initial_tables, v0002_app_info

all_steps = (v0001_initial_tables, v0002_app_info)
