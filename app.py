from cantonese_tutor import create_app
from cantonese_tutor.config import Config

app = create_app()

if __name__ == '__main__':
    # Bind to a dedicated port so the frontend's default API base (:4000) works
    app.run(host='127.0.0.1', port=Config.PORT, debug=(Config.ENV != 'production'))
