from crumbsy.main import create_app

app = create_app()
