"""Основной модуль Discord бота."""

import logging
import sys

import discord
from discord.ext import commands, tasks
from dotenv import load_dotenv

from whitelist_bot.app.config import BotConfig
from whitelist_bot.app.container import Container
from whitelist_bot.infrastructure.discord_transport import DiscordTransport
from whitelist_bot.utils.monitoring import capture_error, update_guilds_count

logger = logging.getLogger(__name__)


def build_intents() -> discord.Intents:
    # Настройка интентов Discord
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = False  # Отключаем привилегированный интент members
    intents.guilds = True
    intents.guild_messages = True
    intents.dm_messages = True
    intents.presences = False  # Отключаем привилегированный интент presences
    return intents


class Bot(commands.Bot):
    """Основной класс бота."""

    def __init__(self, container: Container):
        """Инициализация бота."""
        super().__init__(command_prefix='!', intents=build_intents())
        self.container = container
        self.db = container.db
        self.transport = DiscordTransport(self)
        self.services = container.build_services(self.transport)
        self.initial_extensions = list(container.initial_extensions)
        # Сбрасывается первым при остановке, новые посты больше не принимаются
        self.accepting_posts = True

    async def setup_hook(self):
        """Инициализация бота при запуске."""
        try:
            logger.info("Начало инициализации бота...")

            # Инициализация базы данных
            logger.info("Инициализация базы данных...")
            await self.db.setup()
            logger.info("База данных успешно инициализирована")

            # Загрузка когов
            logger.info("Загрузка когов...")
            for extension in self.initial_extensions:
                await self.load_extension(extension)
                logger.info(f"Загружен ког: {extension}")

            # Запуск фоновых задач
            logger.info('Запуск фоновых задач...')
            self.services.recorder.start()
            self.services.deletions.start()
            self.services.scheduler.start()
            self.update_metrics.start()

            # Синхронизация команд с Discord
            try:
                await self.tree.sync()
                logger.info('Глобальные команды синхронизированы')
            except Exception as e:
                logger.error(f'Ошибка при синхронизации глобальных команд: {str(e)}')
                capture_error(e, {'task': 'tree_sync'})

            logger.info("Инициализация бота завершена успешно!")

        except Exception as e:
            logger.error(f"Критическая ошибка в setup_hook: {str(e)}", exc_info=True)
            raise

    @tasks.loop(minutes=5)
    async def update_metrics(self):
        """Обновление метрик бота."""
        if not self.container.config.use_metrics:
            return
        try:
            update_guilds_count(len(self.guilds))
        except Exception as e:
            logger.error(f"Ошибка при обновлении метрик: {str(e)}", exc_info=True)
            capture_error(e, {'task': 'update_metrics'})

    async def on_ready(self):
        logger.info(f'{self.user} запущен и готов к работе!')

    async def on_error(self, event_method, *args, **kwargs):
        """Обработка ошибок событий бота."""
        error = sys.exc_info()[1]
        logger.error(f"Ошибка в {event_method}: {str(error)}", exc_info=True)
        if error is not None:
            capture_error(error, {'event': event_method})

    async def close(self):
        """Остановка: прием постов, затем очередь удаления и журнал, затем БД и шлюз."""
        logger.info("Остановка бота...")
        self.accepting_posts = False
        if self.update_metrics.is_running():
            self.update_metrics.cancel()
        try:
            await self.services.scheduler.stop()
            await self.services.deletions.stop()
            await self.services.recorder.stop()
        except Exception as e:
            logger.error(f"Ошибка при остановке фоновых задач: {str(e)}", exc_info=True)
            capture_error(e, {'task': 'shutdown'})
        await self.db.close()
        await super().close()


def main() -> Bot:
    """Собрать бота из переменных окружения."""
    load_dotenv()
    # Настройка логирования
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('bot.log'),
            logging.StreamHandler()
        ]
    )
    config = BotConfig.from_env()
    return Bot(Container(config))


def run() -> None:
    bot = main()
    token = bot.container.config.token
    if not token:
        logger.error("Не задан DISCORD_TOKEN")
        sys.exit(1)
    bot.run(token, log_handler=None)


if __name__ == '__main__':
    run()
