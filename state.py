"""
Estado compartido entre el hilo de captura y el hilo de teclado.

Hay dos recursos independientes, cada uno con su propio lock:
- MessageLog: el historial de mensajes que se muestra en pantalla.
- InputBuffer: el texto que el usuario está escribiendo.

Nunca se toma un lock mientras se tiene el otro, así que no hay orden de
adquisición que respetar ni posibilidad de deadlock entre ellos.
"""
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from config import MAX_MESSAGES


class Category(str, Enum):
    """Tipo de mensaje. Decide el color con el que se pinta."""
    INFO = "info"
    SELF = "self"
    RECEIVED = "received"
    ERROR = "error"
    HELP_HEADER = "help_header"
    HELP_ROW = "help_row"


@dataclass(frozen=True)
class ChatMessage:
    text: str
    category: Category


class MessageLog:
    """
    Historial acotado de mensajes en orden de llegada.
    Al superar la capacidad se descartan los más antiguos (FIFO).
    """

    def __init__(self, capacity=MAX_MESSAGES):
        if capacity < 1:
            raise ValueError("La capacidad debe ser al menos 1")
        self._messages = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self):
        return self._messages.maxlen

    def append(self, text, category=Category.INFO):
        """
        Añade un mensaje al final del historial.
        Args:
            text (str): El contenido. Se ignora si queda vacío tras quitar espacios.
            category (Category): El tipo de mensaje.
        Returns:
            bool: True si el mensaje se guardó.
        """
        if not text or not text.strip():
            return False
        message = ChatMessage(text, Category(category))
        with self._lock:
            self._messages.append(message)
        return True

    def snapshot(self):
        """Copia consistente del historial, para pintar sin retener el lock."""
        with self._lock:
            return list(self._messages)

    def __len__(self):
        with self._lock:
            return len(self._messages)


class InputBuffer:
    """Texto pendiente de envío. Solo lo modifica el hilo de teclado."""

    def __init__(self):
        self._chars = []
        self._lock = threading.Lock()

    def append_char(self, char):
        with self._lock:
            self._chars.append(char)

    def backspace(self):
        """Borra el último carácter. Devuelve False si el buffer ya estaba vacío."""
        with self._lock:
            if not self._chars:
                return False
            self._chars.pop()
            return True

    def take_and_clear(self):
        """Devuelve el texto acumulado y deja el buffer vacío."""
        with self._lock:
            text = ''.join(self._chars)
            self._chars.clear()
        return text

    def text(self):
        with self._lock:
            return ''.join(self._chars)
