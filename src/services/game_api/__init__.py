# src/services/game_api/__init__.py
"""
Game API: игроки, лидерборд, проверка initData Telegram Mini App.
"""
