import ssl

from skullking import create_app, socketio

app = create_app()


def _ssl_context(cfg):
    if not (cfg.get('SSL_CERT_PATH') and cfg.get('SSL_KEY_PATH')):
        return None
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(cfg['SSL_CERT_PATH'], cfg['SSL_KEY_PATH'])
    if cfg.get('SSL_CA_PATH'):
        context.load_verify_locations(cfg['SSL_CA_PATH'])
    return context


if __name__ == '__main__':
    cfg = app.config
    context = _ssl_context(cfg)
    if context is None and cfg.get('FORCE_HTTPS'):
        app.logger.warning('FORCE_HTTPS is set but no certificate is configured; expecting a TLS proxy')
    socketio.run(
        app,
        host='0.0.0.0',
        port=cfg['PORT'],
        debug=cfg.get('APP_ENV') == 'development',
        ssl_context=context,
        allow_unsafe_werkzeug=True,
    )
