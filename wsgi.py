from farmfresh import create_app

app = create_app()
