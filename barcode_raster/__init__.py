"""
Пакет barcode_raster
====================

Растеризация линейных штрихкодов в PNG точного физического размера.

Этот пакет предоставляет:
    - Расчёт размера холста в пикселях по сантиметрам и DPI
    - Генерацию векторного символа (SVG) через python-barcode
    - Снимок SVG в виде отзываемого ресурса в памяти
    - Композицию: масштабирование с сохранением пропорций, тихая зона, белый фон
    - Кодирование в PNG с метаданными DPI
    - Оркестратор экспорта с единственным слотом загрузки

Пример базового использования:
    >>> import asyncio
    >>> from barcode_raster import BarcodeSession, BarcodeType
    >>>
    >>> session = BarcodeSession(value="ABC-12345", barcode_type=BarcodeType.CODE128)
    >>> session.render()
    >>> result = asyncio.run(session.export())
    >>> result.download.filename
    'ABC-12345_5x3cm.png'

Управление конфигурацией:
    >>> import os
    >>> os.environ['BARCODE_RASTER_LOG_LEVEL'] = 'DEBUG'
    >>>
    >>> from barcode_raster import load_config
    >>> config = load_config()
    >>> config['dpi']
    300

Версия: 0.1.0
Лицензия: MIT
Python: 3.11+
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__author__ = "barcode_raster Development Team"
__description__ = "Print-accurate PNG rasterization of linear barcode symbols"
__license__ = "MIT"
__python_requires__ = ">=3.11"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# =============================================================================
# ПРОВЕРКА ВЕРСИИ PYTHON
# =============================================================================

if sys.version_info < (3, 11):
    raise RuntimeError(
        f"barcode_raster требует Python 3.11 или выше. "
        f"Текущая версия: {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro}"
    )

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

LOGGER_NAMESPACE = "barcode_raster"


def _setup_logging() -> None:
    """
    Инициализировать общепакетную конфигурацию логирования.

    Настраивает логгер пакета с:
    - Консольным обработчиком (stderr) для WARNING и выше
    - Ротирующим файловым обработчиком, если задан каталог
      BARCODE_RASTER_LOG_DIR

    Уровень логирования задаётся переменной окружения
    BARCODE_RASTER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL.

    Функция идемпотентна - повторные вызовы не имеют эффекта.
    """
    log_level_str = os.environ.get("BARCODE_RASTER_LOG_LEVEL", "INFO").upper()

    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    log_level = log_level_map.get(log_level_str, logging.INFO)

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    if root_logger.handlers:
        return

    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        fmt=("[%(asctime)s] %(levelname)-8s " "[%(name)s.%(funcName)s:%(lineno)d] %(message)s"),
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir_env = os.environ.get("BARCODE_RASTER_LOG_DIR")
    if log_dir_env:
        try:
            log_dir = Path(log_dir_env)
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / "barcode_raster.log",
                maxBytes=10 * 1024 * 1024,  # 10 МБ
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(
                f"Не удалось инициализировать файловое логирование: {e}. "
                f"Используется только консоль."
            )

    root_logger.propagate = False


def get_logger(module_name: str) -> logging.Logger:
    """
    Получить логгер в пространстве имён пакета.

    Логгеры именуются как 'barcode_raster.<module_name>' и наследуют
    обработчики логгера пакета.

    Аргументы:
        module_name: Имя модуля, обычно `__name__`.

    Пример:
        >>> logger = get_logger("scripts.export")
        >>> logger.name
        'barcode_raster.scripts.export'
    """
    if module_name.startswith(LOGGER_NAMESPACE):
        return logging.getLogger(module_name)
    if module_name == "__main__":
        return logging.getLogger(f"{LOGGER_NAMESPACE}.main")
    clean_name = module_name.lstrip(".")
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{clean_name}")


# =============================================================================
# УПРАВЛЕНИЕ КОНФИГУРАЦИЕЙ
# =============================================================================

MIN_DPI = 72
MAX_DPI = 1200

_DEFAULT_CONFIG: Dict[str, Any] = {
    "dpi": 300,
    "width_cm": 5.0,
    "height_cm": 3.0,
    "include_text": True,
    "barcode_format": "CODE128",
    "module_width_px": 2.0,
    "bar_height_px": 60.0,
    "margin_px": 8.0,
    "font_size_px": 14.0,
    "padding_ratio": 0.04,
    "background": "#ffffff",
    "max_canvas_side": 10000,
    "log_level": "INFO",
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Загрузить конфигурацию из barcode_raster.json или вернуть настройки
    по умолчанию.

    Ключи конфигурации:
        - dpi: int - разрешение экспорта (по умолчанию 300)
        - width_cm / height_cm: float - физический размер этикетки
        - include_text: bool - печатать ли человекочитаемую строку
        - barcode_format: str - CODE128, EAN13, UPC, CODE39, ITF
        - module_width_px, bar_height_px, margin_px, font_size_px: float -
          геометрия символа в CSS-пикселях
        - padding_ratio: float - доля тихой зоны от меньшей стороны
        - background: str - цвет фона холста
        - max_canvas_side: int - предел стороны холста в пикселях
        - log_level: str

    Аргументы:
        config_path: Путь к файлу. Если None, ищется 'barcode_raster.json'
                    в текущем каталоге.

    Возвращает:
        Словарь со всеми ключами по умолчанию, перекрытыми
        пользовательскими значениями.
    """
    logger = get_logger(__name__)

    if config_path is None:
        config_path = Path("barcode_raster.json")

    config = _DEFAULT_CONFIG.copy()

    if not config_path.exists():
        logger.info(
            f"Файл конфигурации {config_path} не найден. "
            f"Используется конфигурация по умолчанию."
        )
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)

        if not isinstance(user_config, dict):
            raise ValueError(
                f"Файл конфигурации должен содержать JSON-объект, "
                f"получен {type(user_config).__name__}"
            )

        config.update(user_config)
        logger.info(f"Конфигурация загружена из {config_path}")
        logger.debug(f"Конфигурация: {config}")

    except json.JSONDecodeError as e:
        logger.warning(
            f"Не удалось разобрать {config_path}: Недопустимый JSON "
            f"в строке {e.lineno}, столбце {e.colno}. "
            f"Используется конфигурация по умолчанию."
        )
    except OSError as e:
        logger.warning(
            f"Не удалось прочитать {config_path}: {e}. "
            f"Используется конфигурация по умолчанию."
        )
    except ValueError as e:
        logger.warning(
            f"Недопустимый формат конфигурации: {e}. "
            f"Используется конфигурация по умолчанию."
        )

    return config


def validate_dpi(dpi: int) -> int:
    """
    Проверить DPI на границе ввода (форма, CLI).

    Ядро принимает любое положительное значение; этот диапазон
    защищает пользователя от огромных холстов.

    Raises:
        ValueError: если dpi не целое число в диапазоне [72, 1200].
    """
    if isinstance(dpi, bool) or not isinstance(dpi, int):
        raise ValueError(f"DPI must be an integer, got {type(dpi).__name__}")
    if not MIN_DPI <= dpi <= MAX_DPI:
        raise ValueError(f"DPI must be between {MIN_DPI} and {MAX_DPI}, got {dpi}")
    return dpi


def check_dependencies() -> Dict[str, bool]:
    """
    Проверить, установлены ли зависимости пакета.

    Не вызывает исключений для отсутствующих пакетов - возвращает
    словарь состояний.

    Проверяемые зависимости:
        - pillow: холст, композиция и кодирование PNG
        - python-barcode: генерация векторного символа
        - cairosvg: декодирование SVG в растр
    """
    dependencies: Dict[str, bool] = {}

    try:
        import PIL  # noqa: F401

        dependencies["pillow"] = True
    except ImportError:
        dependencies["pillow"] = False

    try:
        import barcode  # noqa: F401

        dependencies["python-barcode"] = True
    except ImportError:
        dependencies["python-barcode"] = False

    try:
        import cairosvg  # noqa: F401

        dependencies["cairosvg"] = True
    except (ImportError, OSError):
        # cairocffi raises OSError when libcairo itself is missing
        dependencies["cairosvg"] = False

    return dependencies


# =============================================================================
# ПУБЛИЧНЫЙ API
# =============================================================================

_setup_logging()

from .model.enums import BarcodeType  # noqa: E402
from .export.dimensions import CanvasSize, compute_canvas_px  # noqa: E402
from .export.errors import (  # noqa: E402
    CanvasLimitError,
    DecodeError,
    DegenerateGeometryError,
    EncodeError,
    ExportBusyError,
    ExportError,
    InvalidResolutionError,
    SerializationError,
    SymbolUnavailableError,
)
from .export.orchestrator import (  # noqa: E402
    DownloadArtifact,
    ExportOrchestrator,
    ExportRequest,
    ExportResult,
    ExportState,
)
from .export.resources import Blob, ResourceHandle, ResourceStore  # noqa: E402
from .export.surface import VectorSurface  # noqa: E402
from .barcodegen.svg_generator import (  # noqa: E402
    BarcodeGenError,
    SvgBarcodeGenerator,
    SymbolOptions,
)
from .session import BarcodeSession  # noqa: E402

__all__ = [
    # Метаданные версии
    "__version__",
    "__author__",
    "__description__",
    "__license__",
    "__python_requires__",
    "VERSION_MAJOR",
    "VERSION_MINOR",
    "VERSION_PATCH",
    # Утилиты
    "get_logger",
    "load_config",
    "validate_dpi",
    "check_dependencies",
    "MIN_DPI",
    "MAX_DPI",
    # Модель
    "BarcodeType",
    "SvgBarcodeGenerator",
    "SymbolOptions",
    "BarcodeGenError",
    "VectorSurface",
    # Экспорт
    "CanvasSize",
    "compute_canvas_px",
    "Blob",
    "ResourceHandle",
    "ResourceStore",
    "ExportOrchestrator",
    "ExportRequest",
    "ExportResult",
    "ExportState",
    "DownloadArtifact",
    # Ошибки
    "ExportError",
    "SymbolUnavailableError",
    "SerializationError",
    "DecodeError",
    "DegenerateGeometryError",
    "EncodeError",
    "CanvasLimitError",
    "InvalidResolutionError",
    "ExportBusyError",
    "BarcodeGenError",
    # Сессия
    "BarcodeSession",
]

_logger = get_logger(__name__)
_logger.debug(f"barcode_raster v{__version__} инициализирован")
