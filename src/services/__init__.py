# src/services/__init__.py
"""
HTTP-сервисы приложения.

- game_api: игроки, лидерборд, проверка initData, выдача токенов backend-клиенту
"""

__all__: list[str] = []
