# --- Configuración de Red ---

# Puerto UDP fijo en el que todos los participantes envían y escuchan.
CHAT_PORT = 9000

# Filtro BPF que se aplica a la sesión de captura. Solo nos interesa el tráfico UDP del chat.
CAPTURE_FILTER_TEMPLATE = "udp and port {port}"

# --- Formato de los Mensajes ---
# No hay cabecera ni longitud: un datagrama es una línea de chat en UTF-8.

ANNOUNCE_TEMPLATE = "[{username}] is online"
USER_MESSAGE_TEMPLATE = "{username}: {text}"

# --- Historial ---

# Cantidad máxima de mensajes que se guardan. Al superarla se descartan los más viejos.
MAX_MESSAGES = 1000

# --- Interfaz de Terminal ---

HEADER_TITLE = " LAN UDP CHAT "
INPUT_PROMPT = "> "

# Cada cuántos ms el hilo de teclado consulta a curses aunque no haya entrada,
# para enterarse de los cambios de tamaño de la terminal.
POLL_TIMEOUT_MS = 50

# Sin esto curses espera un segundo entero antes de entregar la tecla Escape.
ESCAPE_DELAY_MS = 25

# --- Comandos ---

EXIT_COMMANDS = ("/exit", "/e")
HELP_COMMANDS = ("/help", "/h", "/?", "/commands")

HELP_HEADER = "COMMAND       DESCRIPTION"
HELP_ROWS = (
    "/exit, /e     Quit the session",
    "/help, /h     Show this list!",
)
