"""
Конфигурация сервиса Vision OCR.

Все значения читаются из .env файла (или переменных окружения).
Единый префикс: AZURE_VISION_

Endpoint и ключ по умолчанию пустые: их отсутствие — ошибка пользователя,
о которой сообщается при запуске задачи, а не падение при старте.

Документация по параметрам: .env.example
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Настройки Vision OCR сервиса.

    Читает переменные с префиксом AZURE_VISION_ из .env файла.
    """

    model_config = SettingsConfigDict(
        env_prefix="AZURE_VISION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Azure AI Vision ---
    # Базовый URL ресурса, например https://<name>.cognitiveservices.azure.com/
    endpoint: str = ""
    # Передаётся в заголовке Ocp-Apim-Subscription-Key
    key: str = ""
    # Необязательный язык распознавания (query-параметр language)
    language: Optional[str] = None

    # --- Polling ---
    poll_interval_seconds: float = 3.0
    max_attempts: int = 15
    request_timeout_seconds: float = 30.0

    # --- Лимиты ---
    max_file_size_mb: int = 50

    # --- Overlay: рендеринг PDF ---
    render_dpi: int = 100

    # --- Сервер ---
    port: int = 8000

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint.strip() and self.key.strip())

    def summary(self) -> dict:
        """Безопасная сводка конфигурации (без значения ключа)."""
        return {
            "endpoint": self.endpoint,
            "key_present": bool(self.key),
            "language": self.language,
            "poll_interval_seconds": self.poll_interval_seconds,
            "max_attempts": self.max_attempts,
            "max_file_size_mb": self.max_file_size_mb,
        }


# Глобальный экземпляр настроек
settings = Settings()
