"""
chat-sandbox 核心模块。
"""
