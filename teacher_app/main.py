"""
Main entry point untuk Teacher Application
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.errors import SubscriptionError
from shared.utils.config_loader import ConfigLoader
from shared.utils.logging_config import configure_logging
from teacher_app.app import TeacherApp, DEFAULT_CONFIG_PATH, DEFAULT_TEMPLATE_PATH


def main() -> int:
    """Main function"""
    config = ConfigLoader.load_config(str(DEFAULT_CONFIG_PATH), str(DEFAULT_TEMPLATE_PATH))
    logger = configure_logging(
        ConfigLoader.get(config, 'logging.level', 'INFO'),
        ConfigLoader.get(config, 'logging.file')
    )

    teacher_app = TeacherApp(config=config)
    logger.info("Starting teacher app for %s", teacher_app.teacher_id)

    try:
        asyncio.run(teacher_app.run())
    except KeyboardInterrupt:
        logger.info("Teacher app stopped")
    except SubscriptionError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
