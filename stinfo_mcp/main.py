from . import tools  # noqa: F401 - register snapshot tools
from . import resources  # noqa: F401 - register playbook resources
from . import stage_cache  # noqa: F401 - register latest stage table resource
from .krpc import tools as krpc_tools  # noqa: F401 - register kRPC tools
from .server import mcp


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
