"""Service Worker registration and update JavaScript for the page shell.

Browser rendition of helpzy.coordinator.UpdateCoordinator and
helpzy.install_prompt.InstallPrompt. Expects the update banner, install
banner and offline banner markup from ._offline to be on the page.
"""

from ..install_prompt import DISMISS_SUPPRESSION_MS, DISMISSED_KEY
from ..models import SKIP_WAITING


def render_registration_js(poll_interval_ms: int) -> str:
    """Render the registration snippet embedded in the page shell.

    Args:
        poll_interval_ms: Milliseconds between registration update checks.
    """
    return f"""
        // ========================================
        // PWA: Service Worker Registration + Updates
        // ========================================
        if ('serviceWorker' in navigator) {{
            const updateBanner = document.getElementById('updateBanner');
            let registration = null;

            const showUpdate = () => updateBanner.classList.add('visible');
            const hideUpdate = () => updateBanner.classList.remove('visible');

            // Reload once when a new worker takes control
            let refreshing = false;
            navigator.serviceWorker.addEventListener('controllerchange', () => {{
                if (refreshing) return;
                refreshing = true;
                window.location.reload();
            }});

            document.getElementById('updateAccept').addEventListener('click', () => {{
                if (registration && registration.waiting) {{
                    registration.waiting.postMessage({{ type: '{SKIP_WAITING}' }});
                }}
            }});
            document.getElementById('updateDismiss').addEventListener('click', hideUpdate);

            window.addEventListener('load', () => {{
                navigator.serviceWorker.register('/sw.js')
                    .catch((error) => console.error('[PWA] Service Worker registration failed:', error));

                navigator.serviceWorker.ready.then((reg) => {{
                    registration = reg;

                    // A worker left waiting by an earlier visit
                    if (reg.waiting) showUpdate();

                    setInterval(() => {{
                        reg.update().catch(() => {{}});
                    }}, {poll_interval_ms});

                    reg.addEventListener('updatefound', () => {{
                        const newWorker = reg.installing;
                        if (!newWorker) return;
                        newWorker.addEventListener('statechange', () => {{
                            // No controller means a first install, not an upgrade
                            if (newWorker.state === 'installed' && navigator.serviceWorker.controller) {{
                                showUpdate();
                            }}
                        }});
                    }});
                }});
            }});
        }}

        // ========================================
        // PWA: Install Prompt
        // ========================================
        (() => {{
            const installBanner = document.getElementById('installBanner');
            let deferredPrompt = null;

            const recentlyDismissed = () => {{
                const dismissed = parseInt(localStorage.getItem('{DISMISSED_KEY}') || '', 10);
                return !Number.isNaN(dismissed) && Date.now() - dismissed < {DISMISS_SUPPRESSION_MS};
            }};

            window.addEventListener('beforeinstallprompt', (event) => {{
                event.preventDefault();
                deferredPrompt = event;
                if (!recentlyDismissed()) installBanner.classList.add('visible');
            }});

            document.getElementById('installAccept').addEventListener('click', async () => {{
                if (!deferredPrompt) return;
                deferredPrompt.prompt();
                const {{ outcome }} = await deferredPrompt.userChoice;
                console.log('[PWA] User response to the install prompt:', outcome);
                deferredPrompt = null;
                installBanner.classList.remove('visible');
            }});

            document.getElementById('installDismiss').addEventListener('click', () => {{
                installBanner.classList.remove('visible');
                localStorage.setItem('{DISMISSED_KEY}', Date.now().toString());
            }});
        }})();

        // ========================================
        // PWA: Online/Offline Detection
        // ========================================
        function updateOnlineStatus() {{
            document.body.classList.toggle('offline', !navigator.onLine);
        }}

        window.addEventListener('online', updateOnlineStatus);
        window.addEventListener('offline', updateOnlineStatus);
        updateOnlineStatus();
"""
