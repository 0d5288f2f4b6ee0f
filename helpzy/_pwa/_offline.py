"""Banner CSS and HTML for the page shell.

The offline banner shows while the network is unavailable; the update and
install banners are toggled by the registration script.
"""

BANNER_CSS = """
        /* Offline banner - shown when body has .offline class */
        #offlineBanner {
            display: none;
            position: fixed;
            top: 0;
            left: 0;
            right: 0;
            background: #dc2626;
            color: white;
            text-align: center;
            padding: 0.5rem;
            z-index: 10000;
            font-size: 0.8rem;
            font-weight: 600;
        }
        body.offline #offlineBanner {
            display: block;
        }

        /* Update and install banners - shown with the .visible class */
        .pwa-banner {
            display: none;
            position: fixed;
            left: 1rem;
            right: 1rem;
            max-width: 28rem;
            margin-left: auto;
            padding: 1.5rem;
            border-radius: 1rem;
            box-shadow: 0 20px 40px rgba(0, 0, 0, 0.25);
            z-index: 50;
        }
        .pwa-banner.visible {
            display: block;
        }
        #updateBanner {
            top: 1rem;
            background: linear-gradient(90deg, #4f46e5, #9333ea);
            color: white;
        }
        #installBanner {
            bottom: 1rem;
            background: white;
            color: #111827;
            border: 1px solid #e5e7eb;
        }
        .pwa-banner h3 {
            margin: 0 0 0.25rem;
        }
        .pwa-banner .close {
            position: absolute;
            top: 0.75rem;
            right: 0.75rem;
            background: none;
            border: none;
            color: inherit;
            cursor: pointer;
        }
"""

OFFLINE_BANNER_HTML = """<div id="offlineBanner" role="alert" aria-live="assertive">You are offline - showing cached content</div>"""

UPDATE_BANNER_TEMPLATE = """<div id="updateBanner" class="pwa-banner" role="status">
    <button id="updateDismiss" class="close" aria-label="Dismiss">&times;</button>
    <h3>Update Available!</h3>
    <p>A new version of {app_name} is ready. Update now to get the latest features and improvements.</p>
    <button id="updateAccept">Update Now</button>
</div>"""

INSTALL_BANNER_TEMPLATE = """<div id="installBanner" class="pwa-banner" role="dialog">
    <button id="installDismiss" class="close" aria-label="Dismiss">&times;</button>
    <h3>Install {app_name}</h3>
    <p>Get quick access and work offline. Install our app for a better experience!</p>
    <button id="installAccept">Install Now</button>
</div>"""
