from georouting.config import config
from georouting.web import create_app

# Validate settings and build the road graph ONCE at startup
config.validate()
app = create_app()

if __name__ == '__main__':
    api_config = config.get_api_config()
    print(f"\n🚀 georouting running at: http://{api_config['host']}:{api_config['port']}\n")
    app.run(threaded=True, **api_config)
