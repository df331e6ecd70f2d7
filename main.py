# main.py
# uvicorn main:app --reload
from inbound_desk.main import create_app

app = create_app()
