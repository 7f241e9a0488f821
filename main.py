"""Ambient Voice - Entry Point"""

import asyncio
import os

from dotenv import load_dotenv

from ambient_voice.core.logging.logger import setup_production_logging, setup_dev_logging
from ambient_voice.core.config.container import setup_container
from ambient_voice.core.exceptions import AmbientVoiceError

# .env may switch DEV_MODE on, so it is read before logging is configured
load_dotenv()
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

if DEV_MODE:
    setup_dev_logging()
else:
    setup_production_logging()


async def main():
    container = setup_container()
    ui = container.console_ui()
    await ui.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!\n")
    except AmbientVoiceError as e:
        print(f"\n❌ {e}\n")
        raise SystemExit(1)
