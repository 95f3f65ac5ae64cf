from kanban_notify.main import create_app

app = create_app()
