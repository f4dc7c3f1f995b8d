from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import click
from pokerclub.config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    # Import and register blueprints here
    from pokerclub.main import main
    flask_app.register_blueprint(main, url_prefix='/api/auth')

    from pokerclub.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from pokerclub.api.club import club
    flask_app.register_blueprint(club, url_prefix='/api/club')

    from pokerclub.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from pokerclub.models import User
        from pokerclub.services.timer import presets as preset_service
        from pokerclub.services.timer.schedule import default_schedule, schedule_to_list
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            admin = User(username='admin', role='admin')
            admin.set_password('password')
            db.session.add(admin)
            player = User(username='player1')
            player.set_password('password')
            db.session.add(player)
            db.session.commit()

            schedule = default_schedule(
                flask_app.config['TIMER_DEFAULT_LEVEL_SEC'],
                flask_app.config['TIMER_DEFAULT_BREAK_SEC'],
                flask_app.config['TIMER_DEFAULT_BREAK_AFTER'],
            )
            preset_service.save_presets([{'name': 'Default', 'levels': schedule_to_list(schedule)}])
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
