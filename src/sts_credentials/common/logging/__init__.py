"""
Logging module for sts_credentials.

Import directly from sub-modules:
    from sts_credentials.common.logging.setup import get_logger, setup_logging
    from sts_credentials.common.logging.utilities import log_with_context
    from sts_credentials.common.logging.context import set_log_context
"""
