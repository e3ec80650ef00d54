"""
JWT Authentication Middleware for the inventory service
Identifies the shop operator behind every request
"""

import jwt
from functools import wraps
from flask import request, g, current_app
import logging

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Custom authentication error"""
    def __init__(self, message, status_code=401):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def get_token_from_request():
    """Extract JWT token from Authorization header"""
    auth_header = request.headers.get('Authorization', '')
    
    if not auth_header:
        return None
    
    if not auth_header.startswith('Bearer '):
        raise AuthError('Authorization header must start with Bearer', 401)
    
    parts = auth_header.split(' ')
    if len(parts) != 2:
        raise AuthError('Invalid Authorization header format', 401)
    
    return parts[1]


def decode_jwt(token):
    """Decode and validate JWT token"""
    config = current_app.config
    secret = config.get('JWT_SECRET')
    if not secret:
        raise RuntimeError('JWT_SECRET is not configured')
    
    options = {}
    kwargs = {}
    if config.get('JWT_ISSUER'):
        kwargs['issuer'] = config['JWT_ISSUER']
    if config.get('JWT_AUDIENCE'):
        kwargs['audience'] = config['JWT_AUDIENCE']
    else:
        options['verify_aud'] = False
    
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[config.get('JWT_ALGORITHM', 'HS256')],
            options=options,
            **kwargs
        )
    except jwt.ExpiredSignatureError:
        raise AuthError('Token has expired', 401)
    except jwt.InvalidTokenError as e:
        logger.warning(f'Invalid token: {str(e)}')
        raise AuthError('Invalid token', 401)


def require_auth(f):
    """
    Decorator to require valid JWT authentication
    Attaches user info to g.current_user
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = get_token_from_request()
            
            if not token:
                logger.warning('Authentication required: No token provided')
                return {
                    'error': 'Authentication required',
                    'message': 'No authentication token provided',
                    'status_code': 401
                }, 401
            
            payload = decode_jwt(token)
            
            user_id = payload.get('id') or payload.get('user_id') or payload.get('sub')
            if not user_id:
                logger.warning('Invalid token: Missing user ID')
                return {
                    'error': 'Invalid token',
                    'message': 'Token missing user identifier',
                    'status_code': 401
                }, 401
            
            g.current_user = {
                'id': str(user_id),
                'email': payload.get('email'),
                'roles': payload.get('roles', [])
            }
            
            logger.debug(f'Authentication successful for user: {user_id}')
            
        except AuthError as e:
            logger.warning(f'Authentication failed: {e.message}')
            return {
                'error': 'Authentication failed',
                'message': e.message,
                'status_code': e.status_code
            }, e.status_code
        
        return f(*args, **kwargs)
    
    return decorated_function


def get_current_operator_id():
    """
    Get the authenticated operator's ID from Flask g object
    Returns None if not authenticated
    """
    user = getattr(g, 'current_user', None)
    return user['id'] if user else None
