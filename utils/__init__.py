"""工具模块：配置、日志、文本处理。"""
