from config import EXIT_COMMANDS, HELP_COMMANDS, HELP_HEADER, HELP_ROWS
from state import Category


class CommandDispatcher:
    """
    Tabla de comandos locales que empiezan por '/'.
    La coincidencia es exacta y no se interpretan argumentos.
    """

    def __init__(self, messages, shutdown):
        self.messages = messages
        self._commands = {}
        for name in EXIT_COMMANDS:
            self._commands[name] = shutdown
        for name in HELP_COMMANDS:
            self._commands[name] = self.show_help

    def dispatch(self, command):
        """Ejecuta el comando. Devuelve False si no existe (y lo informa en el chat)."""
        action = self._commands.get(command)
        if action is None:
            self.messages.append(f"Comando desconocido: {command}", Category.ERROR)
            return False
        action()
        return True

    def show_help(self):
        self.messages.append(HELP_HEADER, Category.HELP_HEADER)
        for row in HELP_ROWS:
            self.messages.append(row, Category.HELP_ROW)
