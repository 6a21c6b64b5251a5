"""PySide6 front end: main window, stateless dialogs and the batch worker."""
