import logging

from flask import Flask, request, Response, jsonify

from proxy_config import ProxyConfig
from proxy_errors import FetchError, MissingParameter
from manifest import proxy_base_url, rewrite_manifest
import upstream

logger = logging.getLogger(__name__)

VERSION = '1.0.0'

EXPIRED_HINT = 'Video link may have expired. Try refreshing the page or selecting another episode.'
RETRY_HINT = 'Unable to fetch video. Please try again later.'


def set_cors_headers(response):
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Origin, X-Requested-With, Content-Type, Accept, Range'
    response.headers['Access-Control-Expose-Headers'] = 'Content-Length, Content-Range'
    return response


def require_arg(name, message=None):
    value = request.args.get(name, '').strip()
    if not value:
        raise MissingParameter(name, message)
    return value


def create_app(config=None):
    config = config or ProxyConfig.from_env()
    app = Flask(__name__)
    app.config['PROXY'] = config
    # upstream JSON is passed through, keep its key order
    app.json.sort_keys = False

    @app.before_request
    def before_request():
        if request.method == 'OPTIONS':
            resp = app.make_default_options_response()
            return set_cors_headers(resp)

    @app.after_request
    def add_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        return set_cors_headers(response)

    @app.errorhandler(MissingParameter)
    def missing_parameter(e):
        return jsonify({'message': e.message}), e.status_code

    @app.route('/')
    def index():
        return jsonify({
            'message': 'Welcome to the Movie API',
            'version': VERSION,
            'endpoints': {
                'movies': '/api/movies/new?page=1',
                'movieDetail': '/api/movies/slug/:slug',
                'categories': '/api/categories',
                'countries': '/api/country',
                'search': '/api/movies/search?keyword=...',
                'stream': '/api/movie/stream?url=...',
                'segment': '/api/movie/segment?url=...',
            },
        })

    @app.route('/api/movie/stream')
    def proxy_playlist():
        original_url = require_arg('url', 'M3U8 URL is required')
        logger.info("[M3U8 Request] %s", original_url)

        try:
            content = upstream.fetch_manifest(original_url, config)
        except FetchError as e:
            logger.error("[M3U8 Error] %s url=%s status=%s", e.message, original_url, e.upstream_status)
            return jsonify({
                'message': 'Error fetching video manifest',
                'detail': e.message,
                'url': original_url,
                'status': e.upstream_status,
                'suggestion': EXPIRED_HINT if e.upstream_status == 404 else RETRY_HINT,
            }), e.upstream_status or 500

        server_url = proxy_base_url(request.headers, request.scheme)
        rewritten = rewrite_manifest(content, original_url, server_url,
                                     rewrite_absolute=config.rewrite_absolute_uris)
        logger.debug("Original playlist (first 300 chars):\n%s", content[:300])
        logger.debug("Rewritten playlist (first 300 chars):\n%s", rewritten[:300])
        logger.info("[M3U8 Success] %s", original_url)

        response = Response(rewritten, content_type='application/vnd.apple.mpegurl')
        response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        return response

    @app.route('/api/movie/segment')
    def proxy_segment():
        segment_url = require_arg('url', 'Segment URL is required')

        try:
            r = upstream.open_stream(segment_url, config)
        except FetchError as e:
            logger.error("[Segment Error] %s url=%s status=%s", e.message, segment_url, e.upstream_status)
            return jsonify({
                'message': 'Error fetching video segment',
                'detail': e.message,
            }), e.upstream_status or 500

        response = Response(upstream.relay(r, config.chunk_size),
                            content_type=r.headers.get('Content-Type', 'video/MP2T'))
        # an unstarted generator never reaches its finally block
        response.call_on_close(r.close)
        # iter_content yields decoded bytes, so a compressed length would be wrong
        if 'Content-Length' in r.headers and 'Content-Encoding' not in r.headers:
            response.headers['Content-Length'] = r.headers['Content-Length']
        response.headers['Cache-Control'] = 'public, max-age=31536000'
        return response

    def passthrough(path, error_message, params=None, with_error=True):
        try:
            data = upstream.fetch_json(path, config, params)
        except FetchError as e:
            logger.error("[API Error] %s: %s", error_message, e.message)
            body = {'message': error_message}
            if with_error:
                body['error'] = e.message
            return jsonify(body), 500
        return jsonify(data)

    @app.route('/api/movies/new')
    def new_movies():
        page = request.args.get('page') or 1
        return passthrough('/danh-sach/phim-moi-cap-nhat', 'Error fetching new movies',
                           {'page': page})

    @app.route('/api/movies/slug/<slug>')
    def movie_detail(slug):
        return passthrough(f'/phim/{slug}', 'Error fetching movie details', with_error=False)

    @app.route('/api/categories')
    def categories():
        return passthrough('/the-loai', 'Error fetching movies categories', with_error=False)

    @app.route('/api/country')
    def countries():
        return passthrough('/quoc-gia', 'Error fetching movies country', with_error=False)

    @app.route('/api/movies/search')
    def search():
        require_arg('keyword')
        return passthrough('/v1/api/tim-kiem', 'Error fetching filtered movies',
                           request.args.to_dict(flat=False))

    @app.route('/api/movies/<type_list>')
    def movie_list(type_list):
        return passthrough(f'/v1/api/danh-sach/{type_list}', 'Error fetching filtered movies',
                           request.args.to_dict(flat=False))

    return app


def main():
    config = ProxyConfig.from_env()
    logging.basicConfig(level=config.log_level,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app = create_app(config)
    logger.info("Server is running on http://localhost:%d", config.port)
    logger.info("Stream endpoint: http://localhost:%d/api/movie/stream", config.port)
    logger.info("Segment endpoint: http://localhost:%d/api/movie/segment", config.port)
    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == '__main__':
    main()
