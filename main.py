import argparse
import curses
import logging
import os
import signal
import sys
import threading

from errors import PacketChatError
from interfaces import resolve
from network_threads import Transport, start_receive_thread
from state import InputBuffer, MessageLog
from tui import ChatApplication, CursesScreen

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = {signal.SIGINT, signal.SIGTERM}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="packetchat",
        description="Chat de red local por broadcast UDP con captura de paquetes.",
    )
    parser.add_argument("username", help="nombre con el que se firman tus mensajes")
    parser.add_argument("--log-file", help="escribe el log en este archivo (por defecto no hay log)")
    parser.add_argument("--debug", action="store_true", help="incluye los mensajes de depuración en el log")
    return parser.parse_args(argv)


def setup_logging(log_file=None, debug=False):
    """
    La terminal es de la interfaz, así que el log solo va a un archivo si se pide.
    Sin archivo se instala un NullHandler para que nada llegue a stderr.
    """
    root = logging.getLogger()
    # scapy trae su propio handler hacia stderr, que rompería la pantalla de curses.
    scapy_logger = logging.getLogger("scapy")
    for handler in list(scapy_logger.handlers):
        scapy_logger.removeHandler(handler)

    if not log_file:
        root.addHandler(logging.NullHandler())
        return

    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s",
    )


def fatal(mensaje):
    """Errores de arranque: se informan por stderr y el proceso termina."""
    print(f"[ERROR] {mensaje}", file=sys.stderr)
    sys.exit(1)


def watch_signals(shutdown):
    """Bloquea el hilo principal hasta recibir SIGINT o SIGTERM y entonces cierra todo."""
    signum = signal.sigwait(SHUTDOWN_SIGNALS)
    logger.info("Señal %s recibida", signal.Signals(signum).name)
    shutdown()


def main(argv=None):
    """
    Función principal: elige la interfaz, abre la red y la pantalla y lanza
    los hilos de captura y de teclado. El hilo principal queda esperando señales.
    """
    args = parse_args(argv)
    setup_logging(args.log_file, args.debug)

    messages = MessageLog()
    input_buffer = InputBuffer()

    try:
        endpoint = resolve()
        transport = Transport(endpoint, args.username, messages).open()
    except PacketChatError as e:
        fatal(e)

    try:
        screen = CursesScreen.open()
    except curses.error as e:
        transport.close()
        fatal(f"No se pudo iniciar la pantalla: {e}")

    def shutdown():
        logger.info("Cerrando el chat")
        screen.close()
        transport.close()
        logging.shutdown()
        # Los hilos bloqueados en la captura o en el teclado se abandonan.
        os._exit(0)

    # Los hilos heredan la máscara: las señales solo las recibe sigwait().
    signal.pthread_sigmask(signal.SIG_BLOCK, SHUTDOWN_SIGNALS)

    app = ChatApplication(screen, messages, input_buffer, transport, shutdown)
    transport.on_message = app.renderer.redraw
    transport.announce()

    start_receive_thread(transport)
    teclado = threading.Thread(target=app.run, name="teclado", daemon=True)
    teclado.start()

    app.show_banner(endpoint)
    app.renderer.redraw()

    watch_signals(shutdown)


if __name__ == "__main__":
    main()
