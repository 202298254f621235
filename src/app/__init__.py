"""Territory Mapper HTTP service and command line."""
