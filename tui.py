"""
Interfaz de terminal a pantalla completa.

La pantalla tiene tres zonas: una fila de cabecera, el historial de mensajes
(siempre mostrando lo más reciente) y una fila de entrada.
"""
import curses
import logging
import select
import sys
import threading

from commands import CommandDispatcher
from config import ESCAPE_DELAY_MS, HEADER_TITLE, POLL_TIMEOUT_MS
from state import Category
from utils import partir_lineas, recortar_entrada

logger = logging.getLogger(__name__)

HEADER_STYLE = "header"
INPUT_STYLE = "input"

ESCAPE_KEYS = ("\x1b",)
BACKSPACE_KEYS = (curses.KEY_BACKSPACE, "\x7f", "\x08")
ENTER_KEYS = (curses.KEY_ENTER, "\n", "\r")

# (primer plano, fondo, atributo extra) de cada estilo
_PALETTE = {
    HEADER_STYLE: (curses.COLOR_BLACK, curses.COLOR_BLUE, curses.A_NORMAL),
    INPUT_STYLE: (curses.COLOR_CYAN, -1, curses.A_NORMAL),
    Category.INFO: (curses.COLOR_BLUE, -1, curses.A_BOLD),
    Category.SELF: (curses.COLOR_GREEN, -1, curses.A_NORMAL),
    Category.RECEIVED: (curses.COLOR_YELLOW, -1, curses.A_NORMAL),
    Category.ERROR: (curses.COLOR_RED, -1, curses.A_NORMAL),
    Category.HELP_HEADER: (curses.COLOR_WHITE, -1, curses.A_BOLD),
    Category.HELP_ROW: (curses.COLOR_WHITE, -1, curses.A_DIM),
}


class CursesScreen:
    """
    Envoltorio mínimo sobre curses.
    Todas las escrituras deben hacerse con 'lock' tomado: curses no soporta
    que dos hilos pinten a la vez.
    """

    def __init__(self, stdscr):
        self._stdscr = stdscr
        self._attrs = {}
        self._closed = False
        self.lock = threading.Lock()

    @classmethod
    def open(cls):
        stdscr = curses.initscr()
        try:
            curses.noecho()
            # cbreak y no raw: Ctrl-C sigue llegando como señal
            curses.cbreak()
            stdscr.keypad(True)
            stdscr.nodelay(True)
            curses.set_escdelay(ESCAPE_DELAY_MS)
            try:
                curses.curs_set(0)
            except curses.error:
                pass  # la terminal no permite ocultar el cursor
            screen = cls(stdscr)
            screen._init_colors()
        except curses.error:
            curses.endwin()
            raise
        return screen

    def _init_colors(self):
        if not curses.has_colors():
            self._attrs = {HEADER_STYLE: curses.A_REVERSE}
            return
        curses.start_color()
        curses.use_default_colors()
        for pair, (style, (fg, bg, extra)) in enumerate(_PALETTE.items(), start=1):
            curses.init_pair(pair, fg, bg)
            self._attrs[style] = curses.color_pair(pair) | extra

    def size(self):
        alto, ancho = self._stdscr.getmaxyx()
        return ancho, alto

    def clear(self):
        if self._closed:
            return
        self._stdscr.erase()

    def put(self, x, y, text, style=None):
        if self._closed:
            return
        try:
            self._stdscr.addstr(y, x, text, self._attrs.get(style, curses.A_NORMAL))
        except curses.error:
            # Escribir en la última celda deja el cursor fuera de la ventana y
            # curses lo reporta como error aunque el carácter se pinta.
            pass

    def show(self):
        # Tras endwin() un refresh devolvería la terminal al modo curses
        if self._closed:
            return
        self._stdscr.refresh()

    def poll_key(self):
        """
        Espera la siguiente tecla (str para caracteres, int para teclas especiales).
        La espera ocurre sin el lock; solo la lectura de curses lo toma.
        """
        while True:
            select.select([sys.stdin], [], [], POLL_TIMEOUT_MS / 1000)
            key = self.read_key()
            if key is not None:
                return key

    def read_key(self):
        """
        Lectura sin bloqueo. Devuelve None si no hay tecla pendiente.
        Alt+tecla llega como ESC seguido de la tecla; se devuelven juntas (ESC + tecla)
        para no confundirlas con un Escape solo.
        """
        with self.lock:
            try:
                key = self._stdscr.get_wch()
            except curses.error:
                return None
            if key not in ESCAPE_KEYS:
                return key
            try:
                siguiente = self._stdscr.get_wch()
            except curses.error:
                return key
            if isinstance(siguiente, str):
                return key + siguiente
            return siguiente

    def close(self):
        with self.lock:
            if self._closed:
                return
            self._closed = True
            self._stdscr.keypad(False)
            curses.nocbreak()
            curses.echo()
            curses.endwin()


def visible_lines(messages, width, height):
    """
    Corta cada mensaje al ancho de la pantalla y devuelve solo las últimas
    líneas que caben en 'height' filas.
    Returns:
        list: [(texto_de_la_linea, categoria), ...] de arriba a abajo.
    """
    lineas = []
    for message in messages:
        for linea in partir_lineas(message.text, width):
            lineas.append((linea, message.category))

    skip = max(0, len(lineas) - max(0, height))
    return lineas[skip:]


class Renderer:
    """Pinta la pantalla completa en una sola sección crítica."""

    def __init__(self, screen, messages, input_buffer):
        self.screen = screen
        self.messages = messages
        self.input_buffer = input_buffer

    def redraw(self):
        # Las copias se toman antes del lock de pantalla y nunca dentro
        mensajes = self.messages.snapshot()
        entrada = self.input_buffer.text()

        with self.screen.lock:
            ancho, alto = self.screen.size()
            self.screen.clear()
            if ancho > 0 and alto > 0:
                self._draw_header(ancho)
                self._draw_messages(mensajes, ancho, alto)
                self._draw_input(entrada, ancho, alto)
            self.screen.show()

    def _draw_header(self, ancho):
        self.screen.put(0, 0, " " * ancho, HEADER_STYLE)
        titulo = HEADER_TITLE[:ancho]
        self.screen.put((ancho - len(titulo)) // 2, 0, titulo, HEADER_STYLE)

    def _draw_messages(self, mensajes, ancho, alto):
        for y, (linea, categoria) in enumerate(visible_lines(mensajes, ancho, alto - 2), start=1):
            self.screen.put(0, y, linea, categoria)

    def _draw_input(self, entrada, ancho, alto):
        self.screen.put(0, alto - 1, " " * ancho, INPUT_STYLE)
        self.screen.put(0, alto - 1, recortar_entrada(entrada, ancho), INPUT_STYLE)


class ChatApplication:
    """
    Bucle de eventos de teclado.
    Convierte cada tecla en un cambio del estado y redibuja.
    """

    def __init__(self, screen, messages, input_buffer, transport, shutdown):
        self.screen = screen
        self.messages = messages
        self.input_buffer = input_buffer
        self.transport = transport
        self.shutdown = shutdown
        self.renderer = Renderer(screen, messages, input_buffer)
        self.commands = CommandDispatcher(messages, shutdown)

    def show_banner(self, endpoint):
        """Mensajes informativos del inicio de sesión."""
        self.messages.append("LAN UDP CHAT", Category.INFO)
        self.messages.append(f"User: {self.transport.username}", Category.INFO)
        self.messages.append(f"Interface: {endpoint.interface}", Category.INFO)
        self.messages.append(f"Broadcast: {endpoint.broadcast}  Port: {endpoint.port}", Category.INFO)
        self.messages.append("Commands: /help  /exit", Category.INFO)

    def handle_key(self, key):
        if key in ESCAPE_KEYS:
            self.shutdown()
            return
        if key == curses.KEY_RESIZE:
            pass
        elif key in BACKSPACE_KEYS:
            self.input_buffer.backspace()
        elif key in ENTER_KEYS:
            self.submit()
        elif isinstance(key, str) and key.isprintable():
            self.input_buffer.append_char(key)
        self.renderer.redraw()

    def submit(self):
        """Envía (o ejecuta, si empieza por '/') lo que haya en la línea de entrada."""
        texto = self.input_buffer.take_and_clear().strip()
        if not texto:
            return
        if texto.startswith('/'):
            self.commands.dispatch(texto)
        else:
            self.transport.send(texto, as_user=True)

    def run(self):
        logger.info("Bucle de teclado iniciado")
        while True:
            self.handle_key(self.screen.poll_key())
